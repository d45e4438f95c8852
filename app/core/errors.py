"""Typed failures of the booking and payment engine.

Every documented bad input ends up as one of these. They subclass ValueError so
route handlers can keep the ``except ValueError`` -> ``HTTPException`` shape,
and each carries the HTTP status and the message that is safe to show a client.
"""


class BookingEngineError(ValueError):
    code = "booking_error"
    http_status = 400
    # None means the message itself is safe to surface verbatim
    public_message: str | None = None

    def __init__(self, message: str = "", **context):
        self.message = message or self.__class__.__name__
        self.context = context
        super().__init__(self.message)

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.public_message or self.message}


class InvalidRequest(BookingEngineError):
    code = "invalid_request"


class InvalidDuration(BookingEngineError):
    code = "invalid_duration"


class PricingError(BookingEngineError):
    code = "pricing_error"


class SchedulingConflict(BookingEngineError):
    code = "scheduling_conflict"
    http_status = 409


class AmountMismatch(BookingEngineError):
    code = "amount_mismatch"
    public_message = "Payment could not be created for this booking."


class BookingNotFound(BookingEngineError):
    code = "booking_not_found"
    http_status = 404
    public_message = "Booking not found"


class OrderNotFound(BookingEngineError):
    code = "order_not_found"
    http_status = 404
    public_message = "Payment order not found"


class NotCancellable(BookingEngineError):
    code = "not_cancellable"
    http_status = 409


class InvalidTransition(BookingEngineError):
    code = "invalid_transition"
    http_status = 409
