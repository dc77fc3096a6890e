from enum import Enum


class OtpPurpose(str, Enum):
    """What a one-time code is allowed to confirm."""

    REGISTRATION = "registration"
    PASSWORD_RESET = "password_reset"
    DELETE_ACCOUNT = "delete_account"


class MediaType(str, Enum):
    AUDIO = "audio"
    VIDEO = "video"


class DeletionJobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class DeletionStep(str, Enum):
    """Ordered, idempotent steps of an account deletion."""

    ENUMERATE_FILES = "enumerate_files"
    DELETE_FILES = "delete_files"
    DELETE_CONTENT = "delete_content"
    NOTIFY_ADMIN = "notify_admin"
    DELETE_USER = "delete_user"


DELETION_STEPS: tuple[DeletionStep, ...] = tuple(DeletionStep)
