"""SQLAlchemy ORM Models for Wiki Reminder."""

from datetime import datetime
from enum import Enum as PyEnum
from uuid import UUID

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDMixin, utc_now


# =============================================================================
# ENUMS
# =============================================================================


class ReminderStatus(str, PyEnum):
    SENT = "sent"
    ESCALATED = "escalated"
    RESPONDED = "responded"


class ResponseType(str, PyEnum):
    UPDATED = "updated"
    NOTHING_TO_UPDATE = "nothing_to_update"
    WILL_UPDATE = "will_update"
    SNOOZE = "snooze"


class AuditAction(str, PyEnum):
    TEAM_LEADER_CREATED = "team_leader_created"
    TEAM_LEADER_UPDATED = "team_leader_updated"
    TEAM_LEADER_DELETED = "team_leader_deleted"
    REMINDER_SENT = "reminder_sent"
    REMINDER_RESPONDED = "reminder_responded"
    ESCALATION_SENT = "escalation_sent"
    SETTINGS_UPDATED = "settings_updated"
    TEST_EMAIL_SENT = "test_email_sent"
    SNOOZE_SET = "snooze_set"


def _enum_values(enum_cls: type[PyEnum]) -> list[str]:
    return [e.value for e in enum_cls]


# =============================================================================
# TEAM LEADERS & COLLECTIONS
# =============================================================================


class TeamLeader(Base, UUIDMixin, TimestampMixin):
    """A person accountable for keeping one or more wiki collections current."""

    __tablename__ = "team_leaders"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(254), unique=True, nullable=False)
    google_chat_id: Mapped[str | None] = mapped_column(String(100))
    outline_user_id: Mapped[str | None] = mapped_column(
        String(100),
        comment="Outline user id; when set only this user's edits count as activity",
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    reminder_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    snooze_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Relationships
    collections: Mapped[list["WikiCollection"]] = relationship(
        back_populates="team_leader",
        cascade="all, delete-orphan",
        order_by="WikiCollection.name",
    )
    reminder_logs: Mapped[list["ReminderLog"]] = relationship(
        back_populates="team_leader",
        cascade="all, delete-orphan",
    )
    response_tokens: Mapped[list["ResponseToken"]] = relationship(
        back_populates="team_leader",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("reminder_count >= 0", name="reminder_count_non_negative"),
        Index("idx_team_leaders_active", "active"),
    )


class WikiCollection(Base, UUIDMixin):
    """Assignment of one Outline collection to a team leader."""

    __tablename__ = "wiki_collections"

    team_leader_id: Mapped[UUID] = mapped_column(
        ForeignKey("team_leaders.id", ondelete="CASCADE"), nullable=False
    )
    outline_collection_id: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(
        String(200), nullable=False,
        comment="Cached display name; the Outline id is authoritative",
    )
    last_checked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False
    )

    team_leader: Mapped["TeamLeader"] = relationship(back_populates="collections")

    __table_args__ = (
        Index("idx_wiki_collections_leader", "team_leader_id"),
    )


# =============================================================================
# REMINDERS & TOKENS
# =============================================================================


class ReminderLog(Base, UUIDMixin):
    """One reminder-send event. Only the response fields are ever updated."""

    __tablename__ = "reminder_logs"

    team_leader_id: Mapped[UUID] = mapped_column(
        ForeignKey("team_leaders.id", ondelete="CASCADE"), nullable=False
    )
    reminder_count: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[ReminderStatus] = mapped_column(
        Enum(ReminderStatus, name="reminder_status", values_callable=_enum_values),
        default=ReminderStatus.SENT,
        nullable=False,
    )
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False
    )
    response_type: Mapped[ResponseType | None] = mapped_column(
        Enum(ResponseType, name="response_type", values_callable=_enum_values)
    )
    comment: Mapped[str | None] = mapped_column(Text)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    team_leader: Mapped["TeamLeader"] = relationship(back_populates="reminder_logs")

    __table_args__ = (
        Index("idx_reminder_logs_leader_time", "team_leader_id", "sent_at"),
    )


class ResponseToken(Base, UUIDMixin):
    """Single-use, time-limited capability to answer one reminder."""

    __tablename__ = "response_tokens"

    token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    team_leader_id: Mapped[UUID] = mapped_column(
        ForeignKey("team_leaders.id", ondelete="CASCADE"), nullable=False
    )
    reminder_log_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("reminder_logs.id", ondelete="SET NULL"), nullable=True
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False
    )

    team_leader: Mapped["TeamLeader"] = relationship(back_populates="response_tokens")
    reminder_log: Mapped["ReminderLog | None"] = relationship()


# =============================================================================
# SETTINGS & AUDIT
# =============================================================================


class Setting(Base):
    """Operational key/value parameter (manager email, threshold, schedule)."""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False, default="")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class AuditLog(Base, UUIDMixin):
    """Append-only audit trail."""

    __tablename__ = "audit_log"

    action: Mapped[AuditAction] = mapped_column(
        Enum(AuditAction, name="audit_action", values_callable=_enum_values), nullable=False
    )
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str | None] = mapped_column(String(100))
    details: Mapped[dict | None] = mapped_column(JSON)
    user_email: Mapped[str | None] = mapped_column(String(254))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_audit_log_time", "created_at"),
        Index("idx_audit_log_entity", "entity_type", "entity_id"),
        Index("idx_audit_log_action", "action", "created_at"),
    )
