from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    ADMIN = "Admin"
    STAFF = "Staff"
    DEPARTMENT_HEAD = "DepartmentHead"
    INSTRUCTOR = "Instructor"
    STUDENT = "Student"
    CLIENT = "Client"
    PARTNER = "Partner"


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class StageStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class ApprovalStatus(str, Enum):
    PENDING_DEPT_HEAD = "Pending_DeptHead"
    PENDING_ADMIN = "Pending_Admin"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class AssetCondition(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class EmploymentType(str, Enum):
    FULL_TIME = "Full-time"
    PART_TIME = "Part-time"
    INTERNSHIP = "Internship"


class PartnerType(str, Enum):
    AFFILIATE = "Affiliate"
    SPONSOR = "Sponsor"
    COLLABORATOR = "Collaborator"
    VENDOR = "Vendor"


class RecordStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class ReportCategory(str, Enum):
    CLIENT_CONSULTANCY = "Client for Consultancy"
    CLIENT_AUDIT = "Client for Audit"
    STUDENT = "Student"
    OTHERS = "Others"


class ReportStatus(str, Enum):
    PENDING = "Pending"
    SIGNED_CONTRACT = "Signed Contract"
    PIPELINE_CLIENT = "Pipeline Client"
    SUBMITTED = "Submitted"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class TargetStatus(str, Enum):
    ACTIVE = "Active"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class ProgressStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


def enum_values(enum_cls) -> list[str]:
    """Persist enum values (not member names) so the stored text matches the API."""
    return [member.value for member in enum_cls]
