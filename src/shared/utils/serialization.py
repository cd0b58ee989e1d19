# /src/shared/utils/serialization.py
"""
Safe JSON helpers with support for datetime, date, UUID, Decimal.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID


class SafeEncoder(json.JSONEncoder):
    def default(self, o: Any):
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        if isinstance(o, (UUID,)):
            return str(o)
        if isinstance(o, (Decimal,)):
            # string keeps money exact across a dump/load cycle
            return str(o)
        if isinstance(o, Enum):
            return o.value
        return super().default(o)


def to_jsonable(data: Any) -> Any:
    """Normalise a nested structure to plain JSON types (what a load would return)."""
    return json.loads(dumps(data))


def dumps(data: Any, *, indent: Optional[int] = None) -> str:
    if indent is None:
        return json.dumps(data, separators=(",", ":"), cls=SafeEncoder, ensure_ascii=False)
    return json.dumps(data, indent=indent, cls=SafeEncoder, ensure_ascii=False)


def loads(s: str) -> Any:
    return json.loads(s)
