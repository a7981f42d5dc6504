"""Core enums used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """System roles."""

    USER = "USER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class AdStatusEnum(StrEnum):
    """Advertisement lifecycle status."""

    DRAFT = "DRAFT"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"
    EXPIRED = "EXPIRED"


class AdConditionEnum(StrEnum):
    """Item condition (vehicle ads only)."""

    NEW = "NEW"
    LIKE_NEW = "LIKE_NEW"
    USED = "USED"


class CategoryTypeEnum(StrEnum):
    """Main category type selecting the metadata schema."""

    REAL_ESTATE = "real_estate"
    VEHICLES = "vehicles"
    SERVICES = "services"
    JOBS = "jobs"
    PERSONAL_HOME = "personal_home"
    MISC = "misc"


class ReportTypeEnum(StrEnum):
    """Reported entity type."""

    AD = "ad"
    MESSAGE = "message"


class ReportStatusEnum(StrEnum):
    """Report review status."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class NotificationStatusEnum(StrEnum):
    """Notification delivery status."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class AccessPathEnum(StrEnum):
    """How an actor obtained the right to act on an ad."""

    OWNER = "owner"
    PERMISSION = "permission"
    SYSTEM = "system"


class ModerationActionEnum(StrEnum):
    """Audited ad operations."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    APPROVE = "approve"
    REJECT = "reject"
    SUSPEND = "suspend"
    UNSUSPEND = "unsuspend"
