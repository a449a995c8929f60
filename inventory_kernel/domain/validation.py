"""
Validation -- boundary parsing for identifiers, quantities and dates.

Every public operation funnels its raw arguments through these helpers before
touching the store, so a rejected call never writes anything.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, InvalidOperation

from inventory_kernel.domain.movement import MovementRequest, MovementType
from inventory_kernel.exceptions import InvalidArgumentError

# Column ranges: stock and quantity are INTEGER, ids are BIGINT
MAX_STOCK = 2**31 - 1
MAX_ID = 2**63 - 1


def parse_positive_int(
    value: object, field: str, label: str, maximum: int = MAX_ID
) -> int:
    """
    Parse ``value`` as a strictly positive integer no larger than ``maximum``.

    Accepts ints and integral strings / Decimals / floats (``"5"``, ``5.0``).
    Rejects booleans, fractions, non-numeric text, zero and negatives.
    """
    if value is None or value == "":
        raise InvalidArgumentError(f"{label} is required", field=field)
    if isinstance(value, bool):
        raise InvalidArgumentError(f"{label} must be a positive integer", field=field)

    if isinstance(value, int):
        parsed = value
    else:
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise InvalidArgumentError(
                f"{label} must be a positive integer", field=field
            ) from None
        if not number.is_finite() or number != number.to_integral_value():
            raise InvalidArgumentError(f"{label} must be a positive integer", field=field)
        parsed = int(number)

    if parsed <= 0:
        raise InvalidArgumentError(f"{label} must be a positive integer", field=field)
    _check_maximum(parsed, maximum, field, label)
    return parsed


def parse_product_id(value: object) -> int:
    return parse_positive_int(value, "product_id", "Product ID")


def parse_quantity(value: object) -> int:
    return parse_positive_int(value, "quantity", "Quantity", maximum=MAX_STOCK)


def parse_notes(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidArgumentError("Notes must be text", field="notes")
    return value.strip() or None


def parse_description(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidArgumentError("Description must be text", field="description")
    return value.strip() or None


def parse_non_negative_int(
    value: object, field: str, label: str, maximum: int = MAX_STOCK
) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise InvalidArgumentError(f"{label} must be a non-negative integer", field=field)
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidArgumentError(
            f"{label} must be a non-negative integer", field=field
        ) from None
    if not number.is_finite() or number != number.to_integral_value() or number < 0:
        raise InvalidArgumentError(f"{label} must be a non-negative integer", field=field)
    parsed = int(number)
    _check_maximum(parsed, maximum, field, label)
    return parsed


def _check_maximum(value: int, maximum: int, field: str, label: str) -> None:
    if value > maximum:
        raise InvalidArgumentError(f"{label} must not exceed {maximum}", field=field)


def parse_price(value: object) -> Decimal:
    if value is None or value == "":
        return Decimal("0.00")
    if isinstance(value, bool):
        raise InvalidArgumentError("Price must be a non-negative number", field="price")
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidArgumentError(
            "Price must be a non-negative number", field="price"
        ) from None
    if not price.is_finite() or price < 0:
        raise InvalidArgumentError("Price must be a non-negative number", field="price")
    return price.quantize(Decimal("0.01"))


def build_request(
    product_id: object,
    type: object,
    quantity: object,
    notes: object = None,
) -> MovementRequest:
    """Validate raw movement fields into a ``MovementRequest``."""
    return MovementRequest(
        product_id=parse_product_id(product_id),
        type=MovementType.parse(type),
        quantity=parse_quantity(quantity),
        notes=parse_notes(notes),
    )


def coerce_request(item: object) -> MovementRequest:
    """
    Accept a ``MovementRequest`` or a mapping from the service layer.

    Mapping keys may use ``product_id`` or ``productId``.
    """
    if isinstance(item, MovementRequest):
        return build_request(item.product_id, item.type, item.quantity, item.notes)
    if not isinstance(item, Mapping):
        raise InvalidArgumentError("Transaction must be an object")
    product_id = item.get("product_id", item.get("productId"))
    missing = [
        name
        for name, val in (
            ("type", item.get("type")),
            ("product_id", product_id),
            ("quantity", item.get("quantity")),
        )
        if val is None or val == ""
    ]
    if missing:
        raise InvalidArgumentError(
            f"Missing required fields: {', '.join(missing)}", field=missing[0]
        )
    return build_request(product_id, item.get("type"), item.get("quantity"), item.get("notes"))


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_date_bound(value: object, field: str, end: bool = False) -> datetime | None:
    """
    Parse a window bound into an aware UTC datetime.

    Accepts ``datetime``, ``date`` and ISO-8601 strings.  A date-only end
    bound covers the whole day (it becomes the last microsecond of that day).
    Naive datetimes are taken as UTC.
    """
    if value is None or value == "":
        return None

    date_only = False
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
        date_only = True
    elif isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                parsed = datetime.combine(date.fromisoformat(text), time.min)
                date_only = True
            else:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise InvalidArgumentError(f"Invalid {field}: {value!r}", field=field) from None
    else:
        raise InvalidArgumentError(f"Invalid {field}: {value!r}", field=field)

    if date_only and end:
        parsed = parsed + timedelta(days=1) - timedelta(microseconds=1)
    return _to_utc(parsed)


def parse_date_range(
    start_date: object, end_date: object
) -> tuple[datetime | None, datetime | None]:
    """Parse and order-check an optional window."""
    start = parse_date_bound(start_date, "start_date")
    end = parse_date_bound(end_date, "end_date", end=True)
    if start is not None and end is not None and start > end:
        raise InvalidArgumentError("Start date must be before end date", field="start_date")
    return start, end


def parse_name(value: object, field: str = "name", label: str = "Name") -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidArgumentError(f"{label} is required", field=field)
    if not isinstance(value, str):
        raise InvalidArgumentError(f"{label} must be text", field=field)
    name = value.strip()
    if len(name) > 255:
        raise InvalidArgumentError(f"{label} must be at most 255 characters", field=field)
    return name
