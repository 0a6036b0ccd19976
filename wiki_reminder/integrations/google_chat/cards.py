"""Google Chat card builders.

Provides card payloads for:
- Reminder to a team leader (with response link)
- Escalation after repeated non-compliance
- Connection test
"""

from html import escape


class GoogleChatCards:
    """Card message builders for the Google Chat webhook."""

    @staticmethod
    def reminder_card(
        name: str,
        email: str,
        collections: list[str],
        reminder_count: int,
        response_url: str,
        escalated: bool = False,
    ) -> dict:
        """
        Build the reminder card.

        Args:
            name: Team leader display name
            email: Team leader email
            collections: Display names of the assigned collections
            reminder_count: Ordinal of this reminder
            response_url: Tokenized link to the response form
            escalated: Whether the escalation threshold has been reached
        """
        title = "Wiki reminder (URGENT)" if escalated else "Wiki reminder"
        return {
            "cards": [
                {
                    "header": {
                        "title": title,
                        "subtitle": f"Reminder #{reminder_count} for {name}",
                    },
                    "sections": [
                        {
                            "widgets": [
                                {"keyValue": {"topLabel": "Team leader", "content": f"{escape(name)} ({escape(email)})"}},
                                {"keyValue": {"topLabel": "Assigned collections", "content": escape(", ".join(collections))}},
                                {"keyValue": {"topLabel": "Reminders", "content": f"{reminder_count}x sent"}},
                            ],
                        },
                        {
                            "widgets": [
                                {
                                    "buttons": [
                                        {
                                            "textButton": {
                                                "text": "Respond",
                                                "onClick": {"openLink": {"url": response_url}},
                                            },
                                        },
                                    ],
                                },
                            ],
                        },
                    ],
                },
            ],
        }

    @staticmethod
    def escalation_card(
        name: str,
        email: str,
        collections: list[str],
        reminder_count: int,
    ) -> dict:
        """Build the escalation card addressed to the manager channel."""
        return {
            "cards": [
                {
                    "header": {
                        "title": "ESCALATION: wiki not updated",
                        "subtitle": f"{name} - {reminder_count}x without reaction",
                    },
                    "sections": [
                        {
                            "widgets": [
                                {
                                    "textParagraph": {
                                        "text": (
                                            f"<b>Attention:</b> team leader <b>{escape(name)}</b> ({escape(email)}) "
                                            f"has not updated or confirmed the wiki after {reminder_count} reminders."
                                        ),
                                    },
                                },
                                {"keyValue": {"topLabel": "Assigned collections", "content": escape(", ".join(collections))}},
                            ],
                        },
                        {
                            "widgets": [
                                {"textParagraph": {"text": "Please contact the team leader directly."}},
                            ],
                        },
                    ],
                },
            ],
        }

    @staticmethod
    def test_message() -> dict:
        return {"text": "Test message from Wiki Reminder - connection works!"}
