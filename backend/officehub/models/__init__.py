"""Import all models so SQLAlchemy metadata is fully registered."""

from officehub.db.base import Base

from officehub.models.audit import ActivityLog
from officehub.models.call_memo import CallMemo
from officehub.models.client import Client, Consultation
from officehub.models.department import Department
from officehub.models.enums import (
    ApprovalStatus,
    AssetCondition,
    EmploymentType,
    NotificationType,
    PartnerType,
    ProgressStatus,
    RecordStatus,
    ReportCategory,
    ReportStatus,
    Role,
    StageStatus,
    TargetStatus,
)
from officehub.models.finance import Asset, AssetDepreciation, PettyCashLedger, PettyCashTransaction
from officehub.models.notification import Notification, NotificationRecipient
from officehub.models.partner import Partner
from officehub.models.progress import ProgressReport, Target, TargetProgress
from officehub.models.staff import Staff
from officehub.models.user import User

__all__ = [
    "Base",
    "ActivityLog",
    "ApprovalStatus",
    "Asset",
    "AssetCondition",
    "AssetDepreciation",
    "CallMemo",
    "Client",
    "Consultation",
    "Department",
    "EmploymentType",
    "Notification",
    "NotificationRecipient",
    "NotificationType",
    "Partner",
    "PartnerType",
    "PettyCashLedger",
    "PettyCashTransaction",
    "ProgressReport",
    "ProgressStatus",
    "RecordStatus",
    "ReportCategory",
    "ReportStatus",
    "Role",
    "Staff",
    "StageStatus",
    "Target",
    "TargetProgress",
    "TargetStatus",
    "User",
]
