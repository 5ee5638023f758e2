from __future__ import annotations

import base64
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel


def to_jsonable(obj: Any) -> Any:
    """
    Convert common Python objects to JSON-serializable equivalents.

    Used both for request bodies sent to the API and for CLI output.

    Security considerations:
    - bytes are base64-encoded to avoid binary injection / encoding issues.
    - does NOT execute or import anything dynamically.

    """
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj

    # pydantic models: wire names (aliases), no unset noise
    if isinstance(obj, BaseModel):
        return to_jsonable(obj.model_dump(mode="json", by_alias=True, exclude_none=True))

    if isinstance(obj, Enum):
        return to_jsonable(obj.value)

    # datetime/date -> ISO 8601
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()

    if isinstance(obj, Path):
        return str(obj)

    # bytes -> base64 string
    if isinstance(obj, (bytes, bytearray)):
        return {"__bytes_b64__": base64.b64encode(bytes(obj)).decode("ascii")}

    if is_dataclass(obj) and not isinstance(obj, type):
        return to_jsonable(asdict(obj))

    if isinstance(obj, Mapping):
        return {str(k): to_jsonable(v) for k, v in obj.items()}

    # iterables (including set/frozenset/tuple/list)
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [to_jsonable(x) for x in obj]

    # fallback: string representation
    return str(obj)
