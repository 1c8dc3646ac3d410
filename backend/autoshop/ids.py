from __future__ import annotations

import re
import uuid

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def new_id() -> str:
    return str(uuid.uuid4())


def is_uuid(value) -> bool:
    return isinstance(value, str) and bool(_UUID_RE.match(value.strip()))


def parse_legacy_id(value) -> int | None:
    """Return a positive integer for legacy identifiers ("42" or 42), else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed > 0 else None
    return None
