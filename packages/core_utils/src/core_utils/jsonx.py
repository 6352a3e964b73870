from __future__ import annotations
from typing import Any, Mapping, Optional
import re

import orjson
from pydantic import BaseModel

__all__ = ["dumps", "loads", "sanitize", "extract_json_object"]

def sanitize(obj: Any) -> Any:
    """Recursively convert *obj* into something JSON-serialisable.

    - Exceptions → {"error": <Type>, "message": str(e)}
    - Pydantic models → model_dump(mode="json")
    - bytes → UTF-8 string (replacement on errors)
    - sets/tuples → lists
    - anything else → str(obj)
    """
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, BaseException):
        return {"error": obj.__class__.__name__, "message": str(obj)}
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, (bytes, bytearray)):
        return bytes(obj).decode("utf-8", "replace")
    if isinstance(obj, Mapping):
        return {str(k): sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [sanitize(v) for v in obj]
    return str(obj)

def dumps(obj: Any) -> str:
    """
    JSON dump that returns a *str* with sorted keys.

    Sorted keys give a stable representation for fingerprints, cache-key
    derivation and log lines.
    """
    return orjson.dumps(obj, option=orjson.OPT_SORT_KEYS, default=sanitize).decode("utf-8")

def loads(data: str | bytes) -> Any:
    """JSON load from str/bytes; a leading UTF-8 BOM is tolerated."""
    b = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    if b[:3] == b"\xef\xbb\xbf":
        b = b[3:]
    return orjson.loads(b)

_FENCED_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)

def _try_loads(text: str) -> Optional[Any]:
    try:
        return loads(text)
    except (orjson.JSONDecodeError, UnicodeEncodeError):
        return None

def extract_json_object(text: str | None) -> Optional[dict]:
    """Best-effort recovery of one JSON object from model output text.

    Order of attempts:
      1. the whole text
      2. the first ```json fenced block
      3. the slice from the first "{" to the last "}"

    Returns ``None`` when nothing parses to a JSON *object*.
    """
    if not text or not text.strip():
        return None
    candidates = [text]
    fenced = _FENCED_RE.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    start, end = text.find("{"), text.rfind("}")
    if start >= 0 and end > start:
        candidates.append(text[start:end + 1])
    for candidate in candidates:
        parsed = _try_loads(candidate)
        if isinstance(parsed, dict):
            return parsed
    return None
