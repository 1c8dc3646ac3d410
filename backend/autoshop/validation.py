from __future__ import annotations
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from autoshop.time_utils import parse_iso_datetime
from autoshop.money_utils import to_decimal

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta


# Integer columns are 32-bit on every supported backend
INT_MIN = -(2 ** 31)
INT_MAX = 2 ** 31 - 1

# Numeric columns declared without precision/scale fall back to Numeric(12, 2)
DEFAULT_PRECISION = 12
DEFAULT_SCALE = 2


class ValidationError(ValueError):
    """400-level input problem. `issues` carries per-field messages when known."""

    def __init__(self, message: str, issues: list[dict] | None = None):
        super().__init__(message)
        self.issues = issues or []

    def to_dict(self) -> dict:
        if self.issues:
            return {"errors": self.issues}
        return {"error": str(self)}


class ConflictError(ValueError):
    """Business rule conflict (e.g., duplicate SKU). Reported as 400."""


class NotFoundError(LookupError):
    """404-level: entity absent or not visible to the caller."""


def issue(field: str, message: str) -> dict:
    return {"field": field, "message": message}


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - non_negative: numeric fields that must be >= 0
    - drop_unknown: silently discard non-writable keys instead of rejecting them
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    non_negative: set[str] = None  # type: ignore
    drop_unknown: bool = False


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def numeric_bounds(coltype: Numeric) -> tuple[Decimal, int]:
    """Largest storable magnitude and decimal places for a Numeric column."""
    precision = coltype.precision or DEFAULT_PRECISION
    scale = coltype.scale if coltype.scale is not None else DEFAULT_SCALE
    step = Decimal(1).scaleb(-scale)
    return Decimal(10) ** (precision - scale) - step, scale


def check_numeric_range(key: str, coltype: Numeric, value: Decimal) -> None:
    limit, _ = numeric_bounds(coltype)
    if abs(value) > limit:
        raise ValidationError(f"{key} is out of range (max {limit})")


def check_integer_range(key: str, value: int) -> None:
    if value < INT_MIN or value > INT_MAX:
        raise ValidationError(f"{key} is out of range")


def _parse_integer(col, value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{col.key} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{col.key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{col.key} must be an integer")
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{col.key} must be an integer, not a decimal")
    raise ValidationError(f"{col.key} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        number = _parse_integer(col, value)
        check_integer_range(col.key, number)
        return number

    # Money / hours. Numeric must be checked before generic fallbacks.
    if isinstance(coltype, Numeric):
        try:
            dec = to_decimal(value)
        except ValueError:
            raise ValidationError(f"{col.key} must be a number")
        if not dec.is_finite():
            raise ValidationError(f"{col.key} must be a finite number")
        check_numeric_range(col.key, coltype, dec)
        _, scale = numeric_bounds(coltype)
        step = Decimal(1).scaleb(-scale)
        rounded = dec.quantize(step, rounding=ROUND_HALF_UP)
        if rounded != dec:
            raise ValidationError(f"{col.key} allows at most {scale} decimal places")
        return rounded

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    All field problems are collected and raised together as one
    ValidationError with itemized issues.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    issues: list[dict] = []
    cols = _columns_by_key(model)

    if policy.drop_unknown:
        payload = {k: v for k, v in payload.items() if k in policy.writable_fields}

    required = policy.required_on_create or set()
    if not partial:
        for f in sorted(required):
            if f not in payload or payload[f] is None or (isinstance(payload[f], str) and not payload[f].strip()):
                issues.append(issue(f, f"{f} is required"))

    for k in payload.keys():
        if k not in policy.writable_fields:
            issues.append(issue(k, f"Field not allowed: {k}"))
        elif k not in cols:
            issues.append(issue(k, f"Unknown field: {k}"))

    patch: dict = {}
    non_negative = policy.non_negative or set()

    for k, raw in payload.items():
        if k not in policy.writable_fields or k not in cols:
            continue
        if any(i["field"] == k for i in issues):
            continue
        col = cols[k]

        if raw is None:
            if not col.nullable:
                issues.append(issue(k, f"{k} cannot be null"))
            else:
                patch[k] = None
            continue

        try:
            val = _coerce_value(col, raw)
        except ValidationError as e:
            issues.append(issue(k, str(e)))
            continue

        if isinstance(col.type, (String, Text)):
            if not col.nullable and val == "":
                issues.append(issue(k, f"{k} cannot be blank"))
                continue
            if col.nullable and val == "":
                val = None

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                issues.append(issue(k, f"{k} exceeds max length {col.type.length}"))
                continue

        if k in non_negative and val is not None and val < 0:
            issues.append(issue(k, f"{k} must be >= 0"))
            continue

        patch[k] = val

    if issues:
        raise ValidationError("Validation failed", issues)

    return patch


def require_fields_present(patch: dict, message: str = "No fields to update") -> None:
    if not patch:
        raise ValidationError(message)
