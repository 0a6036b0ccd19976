"""HTML email bodies for reminders and escalations."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from html import escape

from .wiki_activity import RecentUpdate


@dataclass
class RenderedEmail:
    subject: str
    html: str


def _format_date(value) -> str:
    return value.strftime("%d.%m.%Y %H:%M")


def build_reminder_email(
    name: str,
    collections: list[str],
    reminder_count: int,
    response_url: str,
    recent_updates: list[RecentUpdate] | None = None,
    escalated: bool = False,
) -> RenderedEmail:
    """Build the reminder email sent to a team leader."""
    recent_updates = recent_updates or []

    if escalated:
        subject = f"[URGENT] Wiki update pending (reminder #{reminder_count})"
        urgency_banner = f"""
        <div style="background-color: #FEE2E2; border: 1px solid #EF4444; border-radius: 8px;
                    padding: 16px; margin-bottom: 24px;">
            <p style="color: #DC2626; font-weight: bold; margin: 0;">
                This is already reminder #{reminder_count}. Please act now!
            </p>
        </div>
        """
    else:
        subject = f"Wiki update reminder (#{reminder_count})"
        urgency_banner = ""

    collection_items = "".join(
        f'<li style="margin: 4px 0;">{escape(c)}</li>' for c in collections
    )

    recent_html = ""
    if recent_updates:
        items = "".join(
            f"<li><strong>{escape(u.title)}</strong> ({escape(u.collection_name)}) - "
            f"{_format_date(u.updated_at)}</li>"
            for u in recent_updates
        )
        recent_html = f"""
        <div style="background-color: #EFF6FF; border: 1px solid #3B82F6; border-radius: 8px;
                    padding: 16px; margin: 20px 0;">
            <strong style="color: #1E40AF;">Your last {len(recent_updates)} wiki updates:</strong>
            <ul style="margin: 12px 0 0 0; padding-left: 20px;">{items}</ul>
        </div>
        """

    button = (
        'style="display: inline-block; background-color: #2563EB; color: white; '
        'padding: 12px 24px; text-decoration: none; border-radius: 8px; font-weight: 500;"'
    )

    html = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
             line-height: 1.6; color: #374151; max-width: 600px; margin: 0 auto; padding: 20px;">
    <h2>Hi {escape(name)},</h2>

    {urgency_banner}

    <p>It is time again to review your assigned wiki documentation and update it where needed.
       Ask yourself what was done this week and whether everything is documented correctly.</p>

    <div style="background-color: #F3F4F6; border-radius: 8px; padding: 16px; margin: 16px 0;">
        <strong>Your collections:</strong>
        <ul style="margin: 8px 0 0 0; padding-left: 20px;">{collection_items}</ul>
    </div>

    {recent_html}

    <p>Please let us know where things stand:</p>
    <p><a href="{escape(response_url)}" {button}>Respond now</a></p>

    <hr style="border: none; border-top: 1px solid #E5E7EB; margin: 24px 0;">
    <p style="color: #9CA3AF; font-size: 12px;">
        This link is personal and can be used once. It expires in 7 days.
    </p>
</body>
</html>
"""
    return RenderedEmail(subject=subject, html=html)


def build_escalation_email(
    team_leader_name: str,
    team_leader_email: str,
    collections: list[str],
    reminder_count: int,
) -> RenderedEmail:
    """Build the escalation email sent to the manager."""
    subject = f"[ESCALATION] {team_leader_name} has not updated the wiki ({reminder_count} reminders)"
    collection_items = "".join(f"<li>{escape(c)}</li>" for c in collections)

    html = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
             line-height: 1.6; color: #374151; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background-color: #DC2626; color: white; padding: 16px; border-radius: 8px 8px 0 0;">
        <h1 style="margin: 0; font-size: 18px;">Escalation: wiki documentation overdue</h1>
    </div>
    <div style="border: 1px solid #E5E7EB; border-top: none; padding: 24px; border-radius: 0 0 8px 8px;">
        <p>Team leader <strong>{escape(team_leader_name)}</strong> ({escape(team_leader_email)})
           has not updated or confirmed the wiki despite {reminder_count} reminders.</p>
        <p><strong>Assigned collections:</strong></p>
        <ul>{collection_items}</ul>
        <p>Please contact the team leader directly.</p>
    </div>
</body>
</html>
"""
    return RenderedEmail(subject=subject, html=html)


def mark_as_test(email: RenderedEmail, real_recipient: str, name: str, current_count: int) -> RenderedEmail:
    """Prefix the subject and append a debug box naming the real recipient."""
    debug_box = f"""
    <div style="background-color: #FEF3C7; border: 1px solid #F59E0B; border-radius: 8px;
                padding: 16px; margin: 20px;">
        <p style="color: #B45309; margin: 0;"><strong>DEBUG INFO:</strong></p>
        <p style="color: #92400E; margin: 8px 0 0 0; font-size: 14px;">
            This is a test email. Real recipient would be: {escape(real_recipient)}<br>
            Team leader: {escape(name)}<br>
            Current reminder count: {current_count}
        </p>
    </div>
</body>"""
    return RenderedEmail(
        subject=f"[TEST] {email.subject}",
        html=email.html.replace("</body>", debug_box, 1),
    )


def build_preview_email(response_url: str, now: datetime | None = None) -> RenderedEmail:
    """A first reminder for a sample leader, used to check the layout."""
    now = now or datetime.now(timezone.utc)
    return build_reminder_email(
        name="Max Mustermann",
        collections=["Engineering Handbook", "Team Processes"],
        reminder_count=1,
        response_url=response_url,
        recent_updates=[
            RecentUpdate("preview-1", "Deployment checklist", "Engineering Handbook", now - timedelta(days=2)),
            RecentUpdate("preview-2", "On-call rotation", "Team Processes", now - timedelta(days=5)),
            RecentUpdate("preview-3", "Code review guidelines", "Engineering Handbook", now - timedelta(days=9)),
        ],
    )
