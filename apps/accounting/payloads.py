"""
Locked document payloads.

A payload is a complete value copy of everything needed to display or
reprint an issued document. It holds no foreign keys and is never rebuilt
from live Company or Customer rows once stored.

Two kinds exist, discriminated by ``kind``:

- ``gas_safety``: a CP12 gas safety record
- ``priced_document``: an issued quote or invoice

Instances are frozen and every nested mapping or list is converted to a
read-only MappingProxyType or tuple, so a payload cannot be edited in place
after locking.
"""

from dataclasses import dataclass, fields
from datetime import date, datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any, ClassVar, Dict, Mapping, Tuple, Union
from uuid import UUID

PAYLOAD_VERSION = 1


def freeze(value: Any) -> Any:
    """Deep copy ``value`` into read-only containers."""
    if isinstance(value, Mapping):
        return MappingProxyType({str(k): freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(freeze(v) for v in value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    return value


def thaw(value: Any) -> Any:
    """Plain JSON-compatible copy of a frozen value."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


class _FrozenPayload:
    kind: ClassVar[str] = ""

    def __post_init__(self) -> None:
        for f in fields(self):
            object.__setattr__(self, f.name, freeze(getattr(self, f.name)))

    def to_dict(self) -> Dict[str, Any]:
        """JSON stored in Document.locked_payload."""
        data = {"kind": self.kind}
        for f in fields(self):
            data[f.name] = thaw(getattr(self, f.name))
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]):
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass(frozen=True)
class GasSafetyPayload(_FrozenPayload):
    kind: ClassVar[str] = "gas_safety"

    certificate_reference: str
    locked_at: str
    company: Mapping[str, Any]
    engineer: Mapping[str, Any]
    landlord: Mapping[str, Any]
    tenant: Mapping[str, Any]
    property_address: str
    appliances: Tuple[Mapping[str, Any], ...]
    final_checks: Mapping[str, Any]
    inspection_date: str
    next_due_date: str
    customer_signature: str
    version: int = PAYLOAD_VERSION


@dataclass(frozen=True)
class PricedDocumentPayload(_FrozenPayload):
    kind: ClassVar[str] = "priced_document"

    document_type: str
    reference: str
    locked_at: str
    company: Mapping[str, Any]
    customer: Mapping[str, Any]
    items: Tuple[Mapping[str, Any], ...]
    discount_percent: str
    totals: Mapping[str, str]
    date: str
    expiry_date: str = ""
    notes: str = ""
    version: int = PAYLOAD_VERSION


LockedPayload = Union[GasSafetyPayload, PricedDocumentPayload]

PAYLOAD_TYPES = {
    GasSafetyPayload.kind: GasSafetyPayload,
    PricedDocumentPayload.kind: PricedDocumentPayload,
}


def load_payload(data: Mapping[str, Any]) -> LockedPayload:
    """Rebuild a typed payload from stored JSON, dispatching on ``kind``."""
    if not isinstance(data, Mapping):
        raise ValueError("Locked payload must be an object")
    kind = data.get("kind")
    try:
        payload_class = PAYLOAD_TYPES[kind]
    except KeyError:
        raise ValueError(f"Unknown locked payload kind '{kind}'")
    return payload_class.from_dict(data)
