class BookingServiceError(Exception):
    """Base class for errors the API maps to a response."""

    status_code = 500
    message = "Request failed"

    def __init__(self, message=None, **details):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        body.update(self.details)
        return body


class ValidationError(BookingServiceError):
    status_code = 400
    message = "Invalid request"


class UnauthorizedError(BookingServiceError):
    status_code = 401
    message = "Authentication required"


class AuthorizationError(BookingServiceError):
    status_code = 403
    message = "Forbidden"


class NotFoundError(BookingServiceError):
    status_code = 404
    message = "Not found"


class ConflictError(BookingServiceError):
    status_code = 409
    message = "Hotel already booked for selected dates"


class AlreadyCancelledError(BookingServiceError):
    status_code = 409
    message = "Booking already cancelled"

    def __init__(self, booking, message=None):
        super().__init__(message)
        self.booking = booking


class DuplicateOrderError(BookingServiceError):
    status_code = 409
    message = "Order id already exists"


class ProviderNotCompletedError(BookingServiceError):
    status_code = 400
    message = "Payment not completed"

    def __init__(self, provider_status, message=None):
        super().__init__(message, status=provider_status)
        self.provider_status = provider_status


class PaymentProviderError(BookingServiceError):
    status_code = 502
    message = "Payment provider unavailable"


class TransientStorageConflictError(BookingServiceError):
    """Write conflict reported by the store; expected to succeed on retry."""

    status_code = 503
    message = "Storage conflict"


class RetriesExhaustedError(BookingServiceError):
    status_code = 500
    message = "Request failed after retries"
