import enum


class RequestStatus(str, enum.Enum):
    """Lifecycle states of a booking request negotiation."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    COUNTERED = "countered"
    CONFIRMED = "confirmed"
    SETTLED_OFFLINE = "settled_offline"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {
        RequestStatus.DECLINED,
        RequestStatus.CONFIRMED,
        RequestStatus.CANCELLED,
        RequestStatus.EXPIRED,
    }
)


class RequestAction(str, enum.Enum):
    """Operations a vendor, viewer or admin can apply to a booking request."""

    ACCEPT = "accept"
    DECLINE = "decline"
    COUNTER = "counter"
    CONFIRM_PAYMENT = "confirm_payment"
    ACCEPT_COUNTER = "accept_counter"
    SETTLE_OFFLINE = "settle_offline"
    CONFIRM_SETTLEMENT = "confirm_settlement"
    CANCEL = "cancel"
    EXPIRE = "expire"
