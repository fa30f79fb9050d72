"""LeakWatch API schemas."""

from leakwatch.api.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
)
from leakwatch.api.schemas.base import (
    CamelCaseModel,
    ErrorResponse,
    IDMixin,
    MessageResponse,
    PaginatedResponse,
    TimestampMixin,
)
from leakwatch.api.schemas.reports import (
    LocationResponse,
    PhotoRemovedResponse,
    PhotosAppend,
    ReportCreate,
    ReportListResponse,
    ReportOwnerSummary,
    ReportResponse,
    ReportStatsResponse,
    ReportUpdate,
    TimelineEvent,
)
from leakwatch.api.schemas.users import (
    BanRequest,
    RoleChangeRequest,
    UserListResponse,
    UserResponse,
)

__all__ = [
    # Base
    "CamelCaseModel",
    "IDMixin",
    "TimestampMixin",
    "PaginatedResponse",
    "MessageResponse",
    "ErrorResponse",
    # Auth
    "LoginRequest",
    "RegisterRequest",
    "LoginResponse",
    "TokenResponse",
    "RefreshRequest",
    # Users
    "UserResponse",
    "UserListResponse",
    "BanRequest",
    "RoleChangeRequest",
    # Reports
    "ReportCreate",
    "ReportUpdate",
    "PhotosAppend",
    "ReportResponse",
    "ReportListResponse",
    "ReportOwnerSummary",
    "LocationResponse",
    "ReportStatsResponse",
    "TimelineEvent",
    "PhotoRemovedResponse",
]
