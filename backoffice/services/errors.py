# backoffice/services/errors.py
"""
Error types raised by the billing engine and the staff-facing operations.

Every error carries a stable ``code`` that callers can switch on and the HTTP
status the controllers answer with. Data integrity gaps met during a batch run
are not errors: the batch logs and skips them.
"""


class BillingError(Exception):
    code = "INTERNAL"
    status_code = 500

    def __init__(self, message=None, details=None):
        self.message = message or self.code.replace("_", " ").capitalize()
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self):
        payload = {"error": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class UnauthenticatedError(BillingError):
    code = "UNAUTHENTICATED"
    status_code = 401


class InvalidArgumentError(BillingError):
    code = "INVALID_ARGUMENT"
    status_code = 400


class NotFoundError(BillingError):
    code = "NOT_FOUND"
    status_code = 404


class InvalidTransitionError(BillingError):
    """A status change the invoice or subscription state machine does not allow."""
    code = "FAILED_PRECONDITION"
    status_code = 409


class ConcurrentUpdateError(BillingError):
    """A subscription changed between read and write; nothing from the batch was kept."""
    code = "ABORTED"
    status_code = 409
