# =======================================================================================
# lockmaster/utils/__init__.py - Utils Package
# =======================================================================================
from .exceptions import *
from .validators import *

__all__ = [
    "LockmasterError", "EntityNotFoundError", "ValidationFailedError", "ConflictError",
    "TransientBackendError", "OperationInProgressError", "TTLockError", "TTLockAuthError",
    "TTLockNotConfiguredError", "ScheduleValidator", "CredentialValidator",
]
