from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Iterable, Mapping, Optional

from .. import models
from ..core.config import settings
from ..utils.errors import ValidationError

_CENT = Decimal("0.01")


@dataclass
class EstimateLine:
    label: str
    quantity: int
    unit_price: Decimal
    amount: Decimal


@dataclass
class PackageEstimate:
    package_id: int
    currency: str
    billable_persons: Optional[int]
    lines: list[EstimateLine] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return _quantize(sum((line.amount for line in self.lines), Decimal("0")))

    def to_dict(self) -> dict:
        return {
            "package_id": self.package_id,
            "currency": self.currency,
            "billable_persons": self.billable_persons,
            "lines": [line.__dict__.copy() for line in self.lines],
            "total": self.total,
        }


def _to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return default


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def billable_persons(package: models.Package, persons: Optional[int]) -> int:
    """Headcount charged for a per-person package (never below the minimum)."""
    minimum = int(package.min_persons or 0)
    return max(int(persons or 0), minimum)


def estimate_package(
    package: models.Package,
    persons: Optional[int] = None,
    extras: Iterable[Mapping[str, int]] = (),
) -> PackageEstimate:
    """Price a package for a headcount plus selected extras.

    ``extras`` items are ``{"extra_id": int, "quantity": int}``. Quantities of
    zero are skipped; unknown extras or quantities above the stock available
    raise :class:`ValidationError`.
    """
    estimate = PackageEstimate(
        package_id=package.id,
        currency=settings.DEFAULT_CURRENCY,
        billable_persons=None,
    )

    if package.pricing_type == models.PricingType.PER_PERSON:
        unit = _to_decimal(package.price_per_person)
        heads = billable_persons(package, persons)
        estimate.billable_persons = heads
        estimate.lines.append(
            EstimateLine(
                label=package.title,
                quantity=heads,
                unit_price=_quantize(unit),
                amount=_quantize(unit * heads),
            )
        )
    else:
        price = _quantize(_to_decimal(package.price))
        estimate.lines.append(
            EstimateLine(label=package.title, quantity=1, unit_price=price, amount=price)
        )

    by_id = {extra.id: extra for extra in package.extras}
    field_errors: dict[str, str] = {}
    for selection in extras:
        extra_id = int(selection["extra_id"])
        quantity = int(selection.get("quantity") or 0)
        extra = by_id.get(extra_id)
        if extra is None:
            field_errors[f"extras.{extra_id}"] = "Unknown extra for this package"
            continue
        if quantity <= 0:
            continue
        if extra.available_qty is not None and quantity > extra.available_qty:
            field_errors[f"extras.{extra_id}"] = (
                f"Only {extra.available_qty} available"
            )
            continue
        unit = _quantize(_to_decimal(extra.price_per_unit))
        estimate.lines.append(
            EstimateLine(
                label=extra.name,
                quantity=quantity,
                unit_price=unit,
                amount=_quantize(unit * quantity),
            )
        )
    if field_errors:
        raise ValidationError("Invalid extras selection", field_errors)
    return estimate
