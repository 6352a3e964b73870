import hashlib
from typing import Any

import orjson

__all__ = ["canonical_json", "sha256_hex", "prompt_fingerprint", "short_fp"]

_CANONICAL = orjson.OPT_SORT_KEYS | orjson.OPT_OMIT_MICROSECONDS
_PART_SEP = b"\x1f"


def canonical_json(obj: Any) -> bytes:
    """Compact JSON with sorted keys, stable across dict ordering."""
    return orjson.dumps(obj, option=_CANONICAL)


def sha256_hex(data: str | bytes) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def prompt_fingerprint(prompt: Any) -> str:
    """``sha256:<hex>`` over the canonical JSON of *prompt*."""
    return f"sha256:{sha256_hex(canonical_json(prompt))}"


def short_fp(*parts: object) -> str:
    """20-hex-char blake2s digest of *parts*; each part is terminated so boundaries count."""
    digest = hashlib.blake2s(digest_size=10)
    for part in parts:
        digest.update(b"" if part is None else str(part).encode("utf-8"))
        digest.update(_PART_SEP)
    return digest.hexdigest()
