from __future__ import annotations

import math
from datetime import datetime, timezone


def utc_now_rfc3339() -> str:
    return format_rfc3339(datetime.now(timezone.utc))


def format_rfc3339(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def strip_0x(value: str) -> str:
    return value[2:] if value[:2].lower() == "0x" else value


def ceil32(length: int) -> int:
    return int(math.ceil(length / 32)) * 32


def format_number(value: float) -> str:
    """Render a JSON number the way it reads in the upstream payload.

    ``18.0`` becomes ``"18"``; other floats use the shortest repr.
    """
    if isinstance(value, int):
        return str(value)
    if math.isfinite(value) and value.is_integer():
        return str(int(value))
    return repr(value)
