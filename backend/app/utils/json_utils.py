from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

import orjson
from fastapi.encoders import jsonable_encoder


def _default(o: Any):
    # Normalize common non-JSON-native types for cache payloads
    if isinstance(o, Decimal):
        return str(o)
    if isinstance(o, (datetime, date)):
        return o.isoformat()
    return str(o)


def dumps(obj: Any) -> str:
    """Serialize obj to a compact JSON string (UTF‑8), with datetime support."""
    return orjson.dumps(
        jsonable_encoder(obj),
        option=orjson.OPT_NON_STR_KEYS,
        default=_default,
    ).decode("utf-8")


def loads(data: str | bytes) -> Any:
    return orjson.loads(data)
