"""Data records exchanged between the saga orchestrator, its services and clients."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

_ZERO_TIME = "0001-01-01T00:00:00Z"
_TIME_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})$"
)


class TransactionStatus(str, Enum):
    """Lifecycle state of a transaction or of one of its steps."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


def _format_time(value: datetime | None) -> str:
    if value is None:
        return _ZERO_TIME
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.isoformat()
    return text[:-6] + "Z" if text.endswith("+00:00") else text


def _parse_time(value: Any) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {value!r}")
    match = _TIME_RE.match(value)
    if match is None:
        raise ValueError(f"invalid timestamp {value!r}")
    base, fraction, zone = match.groups()
    if base == "0001-01-01T00:00:00":
        return None
    micros = (fraction or "")[:6].ljust(6, "0")
    offset = "+00:00" if zone == "Z" else zone
    return datetime.fromisoformat(f"{base}.{micros}{offset}")


def _require_mapping(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be a JSON object, got {type(data).__name__}")
    return data


def _as_str(data: dict, key: str) -> str:
    value = data.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string, got {value!r}")
    return value


def _as_float(data: dict, key: str) -> float:
    value = data.get(key, 0.0)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"field {key!r} must be a number, got {value!r}")
    return float(value)


def _as_int(data: dict, key: str) -> int:
    value = data.get(key, 0)
    if value is None:
        return 0
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field {key!r} must be an integer, got {value!r}")
    return value


def _as_bool(data: dict, key: str) -> bool:
    value = data.get(key, False)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"field {key!r} must be a boolean, got {value!r}")
    return value


def _as_status(data: dict, key: str) -> TransactionStatus:
    value = data.get(key)
    if value in (None, ""):
        return TransactionStatus.PENDING
    try:
        return TransactionStatus(value)
    except ValueError:
        raise ValueError(f"unknown status {value!r}") from None


@dataclass
class Item:
    """One line of an order."""

    id: str = ""
    name: str = ""
    price: float = 0.0
    quantity: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Item:
        data = _require_mapping(data, "item")
        return cls(
            id=_as_str(data, "id"),
            name=_as_str(data, "name"),
            price=_as_float(data, "price"),
            quantity=_as_int(data, "quantity"),
        )


@dataclass
class CreateOrderRequest:
    """A request to run the create-order saga."""

    customer_id: str = ""
    items: list[Item] = field(default_factory=list)
    amount: float = 0.0
    address: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "items": [item.to_dict() for item in self.items],
            "amount": self.amount,
            "address": self.address,
        }

    @classmethod
    def from_dict(cls, data: Any) -> CreateOrderRequest:
        data = _require_mapping(data, "request")
        raw_items = data.get("items") or []
        if not isinstance(raw_items, list):
            raise ValueError("field 'items' must be a list")
        return cls(
            customer_id=_as_str(data, "customer_id"),
            items=[Item.from_dict(entry) for entry in raw_items],
            amount=_as_float(data, "amount"),
            address=_as_str(data, "address"),
        )


@dataclass
class Step:
    """One action taken while running a saga."""

    name: str
    status: TransactionStatus = TransactionStatus.PENDING
    started_at: datetime | None = None
    ended_at: datetime | None = None
    error: str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "started_at": _format_time(self.started_at),
            "ended_at": _format_time(self.ended_at),
        }
        if self.error:
            result["error"] = self.error
        return result

    @classmethod
    def from_dict(cls, data: Any) -> Step:
        data = _require_mapping(data, "step")
        return cls(
            name=_as_str(data, "name"),
            status=_as_status(data, "status"),
            started_at=_parse_time(data.get("started_at")),
            ended_at=_parse_time(data.get("ended_at")),
            error=_as_str(data, "error"),
        )


@dataclass
class Transaction:
    """The state of one saga run."""

    id: str = ""
    customer_id: str = ""
    amount: float = 0.0
    address: str = ""
    order_id: str = ""
    status: TransactionStatus = TransactionStatus.PENDING
    created_at: datetime | None = None
    completed_at: datetime | None = None
    failure_reason: str = ""
    steps: list[Step] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "order_id": self.order_id,
            "customer_id": self.customer_id,
            "amount": self.amount,
            "address": self.address,
            "status": self.status.value,
            "created_at": _format_time(self.created_at),
            "completed_at": _format_time(self.completed_at),
        }
        if self.failure_reason:
            result["failure_reason"] = self.failure_reason
        result["steps"] = [step.to_dict() for step in self.steps]
        return result

    @classmethod
    def from_dict(cls, data: Any) -> Transaction:
        data = _require_mapping(data, "transaction")
        raw_steps = data.get("steps") or []
        if not isinstance(raw_steps, list):
            raise ValueError("field 'steps' must be a list")
        return cls(
            id=_as_str(data, "id"),
            customer_id=_as_str(data, "customer_id"),
            amount=_as_float(data, "amount"),
            address=_as_str(data, "address"),
            order_id=_as_str(data, "order_id"),
            status=_as_status(data, "status"),
            created_at=_parse_time(data.get("created_at")),
            completed_at=_parse_time(data.get("completed_at")),
            failure_reason=_as_str(data, "failure_reason"),
            steps=[Step.from_dict(entry) for entry in raw_steps],
        )


@dataclass(frozen=True)
class ServiceResponse:
    """The reply of an order, payment or shipping service."""

    success: bool
    message: str = ""
    order_id: str = ""
    payment_id: str = ""
    shipping_id: str = ""
    status: str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success, "message": self.message}
        for key in ("payment_id", "shipping_id", "order_id", "status"):
            value = getattr(self, key)
            if value:
                result[key] = value
        return result

    @classmethod
    def from_dict(cls, data: Any) -> ServiceResponse:
        data = _require_mapping(data, "response")
        return cls(
            success=_as_bool(data, "success"),
            message=_as_str(data, "message"),
            order_id=_as_str(data, "order_id"),
            payment_id=_as_str(data, "payment_id"),
            shipping_id=_as_str(data, "shipping_id"),
            status=_as_str(data, "status"),
        )