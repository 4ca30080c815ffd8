"""Domain errors raised by core services and adapters."""


class EventNotFoundError(LookupError):
    """No event exists with the given id."""


class UserNotFoundError(LookupError):
    """No user exists with the given id."""


class CheckoutError(ValueError):
    """A booking rule rejected the checkout request."""


class InvalidSeatsError(CheckoutError):
    pass


class DuplicateBookingError(CheckoutError):
    pass


class SoldOutError(CheckoutError):
    pass


class EventNotBookableError(CheckoutError):
    pass


class PaymentGatewayError(Exception):
    """The payment provider failed or refused a request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SignatureVerificationError(ValueError):
    """A webhook payload did not carry a valid signature."""


class ParticipationNotFoundError(LookupError):
    """No participation exists with the given id."""


class CheckInError(CheckoutError):
    """A ticket was refused at the entrance."""


class InvalidTicketError(CheckInError):
    pass


class EventNotTodayError(CheckInError):
    pass


class TicketAlreadyUsedError(CheckInError):
    pass


class ParticipationNotConfirmedError(CheckInError):
    pass
