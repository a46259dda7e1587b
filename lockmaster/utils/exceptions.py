# =======================================================================================
# lockmaster/utils/exceptions.py - Custom Exceptions
# =======================================================================================
class LockmasterError(Exception):
    """Base exception for the property access portal."""
    status_code = 500

class EntityNotFoundError(LockmasterError):
    """Raised when a record id does not exist."""
    status_code = 404

    def __init__(self, entity: str, record_id: str):
        super().__init__(f"{entity} {record_id} not found")
        self.entity = entity
        self.record_id = record_id

class ValidationFailedError(LockmasterError):
    """Raised when a write would break a data invariant."""
    status_code = 422

class ConflictError(LockmasterError):
    """Raised when a write collides with an existing record."""
    status_code = 409

class TransientBackendError(LockmasterError):
    """Raised when the persistence backend is temporarily unreachable."""
    status_code = 503

class OperationInProgressError(LockmasterError):
    """Raised when an operation is started while another run is pending."""
    status_code = 409

class TTLockError(LockmasterError):
    """Raised when the TTLock cloud API rejects or fails a request."""
    status_code = 502

    def __init__(self, message: str, errcode: int = None):
        super().__init__(message)
        self.errcode = errcode

class TTLockAuthError(TTLockError):
    """Raised when the TTLock OAuth exchange fails."""
    status_code = 401

class TTLockNotConfiguredError(TTLockError):
    """Raised when no TTLock account credentials are available."""
    status_code = 400
