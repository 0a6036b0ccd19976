"""Business logic services for Wiki Reminder."""

from .audit import AuditService
from .compliance import ComplianceState, LeaderComplianceTracker, Transition
from .export import ExportService
from .notification_service import DispatchResult, NotificationDispatcher
from .reminder_engine import (
    EngineConfig,
    ReminderCheckResult,
    ReminderCycleInProgressError,
    ReminderEngine,
    TestReminderResult,
)
from .response_intake import ResponseIntake, ResponseOutcome, message_for_reason, user_message
from .settings_service import ReminderSettings, SettingsService, SettingsValidationError
from .team_leaders import (
    DuplicateEmailError,
    TeamLeaderNotFoundError,
    TeamLeaderService,
    TeamLeaderValidationError,
)
from .tokens import (
    TokenAlreadyUsedError,
    TokenError,
    TokenExpiredError,
    TokenIssuer,
    TokenNotFoundError,
    TokenValidation,
)
from .wiki_activity import WikiActivityReader

__all__ = [
    "AuditService",
    "ComplianceState",
    "LeaderComplianceTracker",
    "Transition",
    "ExportService",
    "DispatchResult",
    "NotificationDispatcher",
    # Reminder engine
    "EngineConfig",
    "ReminderCheckResult",
    "ReminderCycleInProgressError",
    "ReminderEngine",
    "TestReminderResult",
    # Responses
    "ResponseIntake",
    "ResponseOutcome",
    "message_for_reason",
    "user_message",
    # Settings
    "ReminderSettings",
    "SettingsService",
    "SettingsValidationError",
    # Team leaders
    "DuplicateEmailError",
    "TeamLeaderNotFoundError",
    "TeamLeaderService",
    "TeamLeaderValidationError",
    # Tokens
    "TokenAlreadyUsedError",
    "TokenError",
    "TokenExpiredError",
    "TokenIssuer",
    "TokenNotFoundError",
    "TokenValidation",
    "WikiActivityReader",
]
