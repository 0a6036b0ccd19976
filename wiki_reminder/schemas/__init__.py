"""Wiki Reminder API Schemas.

Schemas are organized by domain:
- base: Common configuration, pagination, errors
- team_leaders: Team leaders and collection assignments
- reminders: Reminder cycles, history, response page
- settings: Operational settings and audit log
- outline: Wiki lookups and debug previews
"""

from .base import (
    ErrorResponse,
    PaginatedResponse,
    PaginationParams,
    WikiBaseModel,
)
from .outline import (
    ChatTestResponse,
    EmailPreviewResponse,
    OutlineCollectionDetailResponse,
    OutlineCollectionResponse,
    OutlineDocumentResponse,
    OutlineOverviewResponse,
    OutlineUserResponse,
    OutlineUsersResponse,
    RecentUpdateResponse,
)
from .reminders import (
    ReminderCheckResponse,
    ReminderLogResponse,
    RespondRequest,
    RespondResponse,
    SchedulerStatusResponse,
    TestReminderRequest,
    TestReminderResponse,
    TokenInfoResponse,
)
from .settings import (
    AuditLogResponse,
    SettingsResponse,
    SettingsUpdate,
)
from .team_leaders import (
    CollectionAssignment,
    CollectionResponse,
    TeamLeaderCreate,
    TeamLeaderResponse,
    TeamLeaderUpdate,
)

__all__ = [
    # Base
    "ErrorResponse",
    "PaginatedResponse",
    "PaginationParams",
    "WikiBaseModel",
    # Outline & debug
    "ChatTestResponse",
    "EmailPreviewResponse",
    "OutlineCollectionDetailResponse",
    "OutlineCollectionResponse",
    "OutlineDocumentResponse",
    "OutlineOverviewResponse",
    "OutlineUserResponse",
    "OutlineUsersResponse",
    "RecentUpdateResponse",
    # Reminders
    "ReminderCheckResponse",
    "ReminderLogResponse",
    "RespondRequest",
    "RespondResponse",
    "SchedulerStatusResponse",
    "TestReminderRequest",
    "TestReminderResponse",
    "TokenInfoResponse",
    # Settings & audit
    "AuditLogResponse",
    "SettingsResponse",
    "SettingsUpdate",
    # Team leaders
    "CollectionAssignment",
    "CollectionResponse",
    "TeamLeaderCreate",
    "TeamLeaderResponse",
    "TeamLeaderUpdate",
]
