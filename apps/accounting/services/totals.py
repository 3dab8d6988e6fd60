"""
Document Totals Engine.

Pure Decimal arithmetic over line items. Nothing is rounded while
calculating; format_currency() rounds to pence only for display.

VAT is apportioned across the whole document by the discounted fraction of
the subtotal (a blanket apportionment, not per line).
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping

ZERO = Decimal("0")
HUNDRED = Decimal("100")
PENNY = Decimal("0.01")


def to_decimal(value: Any, field: str = "value") -> Decimal:
    """
    Convert user input to Decimal.

    Floats go through ``str`` so 0.1 becomes Decimal("0.1"), not its binary
    expansion. None and blank strings count as zero.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid {field}: {value!r}")
    if isinstance(value, (int, float)):
        value = str(value)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return ZERO
        try:
            result = Decimal(value)
        except InvalidOperation:
            raise ValueError(f"Invalid {field}: {value!r}")
        if not result.is_finite():
            raise ValueError(f"Invalid {field}: {value!r}")
        return result
    raise ValueError(f"Invalid {field}: {value!r}")


@dataclass(frozen=True)
class LineItem:
    description: str
    quantity: Decimal
    unit_price: Decimal
    vat_percent: Decimal

    @classmethod
    def from_value(cls, item: Any) -> "LineItem":
        if isinstance(item, LineItem):
            return item
        if not isinstance(item, Mapping):
            raise ValueError(f"Line item must be an object, got {type(item).__name__}")
        return cls(
            description=str(item.get("description") or ""),
            quantity=to_decimal(item.get("quantity"), "quantity"),
            unit_price=to_decimal(
                item.get("unit_price", item.get("unitPrice")), "unit_price"
            ),
            vat_percent=to_decimal(
                item.get("vat_percent", item.get("vatPercent")), "vat_percent"
            ),
        )

    @property
    def net(self) -> Decimal:
        return self.quantity * self.unit_price

    @property
    def vat(self) -> Decimal:
        return self.net * self.vat_percent / HUNDRED

    def as_dict(self) -> Dict[str, str]:
        return {
            "description": self.description,
            "quantity": str(self.quantity),
            "unit_price": str(self.unit_price),
            "vat_percent": str(self.vat_percent),
        }


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal
    vat_total: Decimal
    discount_amount: Decimal
    apportioned_vat: Decimal
    grand_total: Decimal

    def as_dict(self) -> Dict[str, str]:
        return {
            "subtotal": str(self.subtotal),
            "vat_total": str(self.vat_total),
            "discount_amount": str(self.discount_amount),
            "apportioned_vat": str(self.apportioned_vat),
            "grand_total": str(self.grand_total),
        }

    def formatted(self, symbol: str = "£") -> Dict[str, str]:
        return {
            key: format_currency(getattr(self, key), symbol)
            for key in (
                "subtotal",
                "vat_total",
                "discount_amount",
                "apportioned_vat",
                "grand_total",
            )
        }


def parse_items(items: Iterable[Any]) -> List[LineItem]:
    return [LineItem.from_value(item) for item in items or []]


def compute_totals(items: Iterable[Any], discount_percent: Any = 0) -> DocumentTotals:
    """
    Totals for a quote or invoice.

    subtotal = sum(quantity * unit_price)
    vat_total = sum(quantity * unit_price * vat_percent / 100)
    discount_amount = subtotal * discount_percent / 100
    apportioned_vat = vat_total * (subtotal - discount_amount) / subtotal,
        or 0 when subtotal is 0
    grand_total = subtotal - discount_amount + apportioned_vat
    """
    lines = parse_items(items)
    discount = to_decimal(discount_percent, "discount_percent")
    if discount < ZERO or discount > HUNDRED:
        raise ValueError("discount_percent must be between 0 and 100")

    subtotal = sum((line.net for line in lines), ZERO)
    vat_total = sum((line.vat for line in lines), ZERO)
    discount_amount = subtotal * discount / HUNDRED

    if subtotal == ZERO:
        apportioned_vat = ZERO
    else:
        apportioned_vat = vat_total * (subtotal - discount_amount) / subtotal

    return DocumentTotals(
        subtotal=subtotal,
        vat_total=vat_total,
        discount_amount=discount_amount,
        apportioned_vat=apportioned_vat,
        grand_total=subtotal - discount_amount + apportioned_vat,
    )


def line_totals(items: Iterable[Any]) -> List[Dict[str, Decimal]]:
    """Per-line ex-VAT and VAT amounts, in input order."""
    return [
        {"net": line.net, "vat": line.vat, "gross": line.net + line.vat}
        for line in parse_items(items)
    ]


def format_currency(amount: Any, symbol: str = "£") -> str:
    """Display string rounded half-up to pence, e.g. ``£1,234.50``."""
    value = to_decimal(amount, "amount").quantize(PENNY, rounding=ROUND_HALF_UP)
    sign = "-" if value < ZERO else ""
    return f"{sign}{symbol}{abs(value):,.2f}"
