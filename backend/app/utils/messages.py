"""Text of the in-app notifications emitted by booking request transitions."""

from decimal import Decimal
from typing import Iterable, Optional

from app.core.config import settings


def _format_dates(dates: Iterable[str]) -> str:
    values = sorted(dates)
    return ", ".join(values) if values else "no dates"


def new_request_message(requester: str, dates: Iterable[str]) -> str:
    return f"New booking request from {requester} for {_format_dates(dates)}."


def accepted_message(business_name: str) -> str:
    return (
        f"{business_name} accepted your booking request. "
        "Please complete the payment or arrange to settle it personally."
    )


def declined_message(business_name: str) -> str:
    return f"{business_name} declined your booking request."


def counter_offer_message(business_name: str, price: Optional[Decimal]) -> str:
    if price is not None:
        return f"{business_name} sent a counter offer ({settings.DEFAULT_CURRENCY} {price})."
    return f"{business_name} sent a counter offer."


def counter_accepted_message(requester: str) -> str:
    return f"{requester} accepted your counter offer."


def settle_offline_message(requester: str, request_id: int) -> str:
    # Must contain the settlement marker; acknowledgements clear by phrase.
    return f"{requester} will {settings.SETTLEMENT_MARKER} for booking request #{request_id}."


def confirmed_message(business_name: str) -> str:
    return f"{business_name} confirmed your booking."


def cancelled_message(requester: str) -> str:
    return f"{requester} cancelled their booking request."
