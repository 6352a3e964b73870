from .ids import generate_request_id
from .fingerprints import canonical_json, sha256_hex, prompt_fingerprint, short_fp
from .health import attach_health_routes
from . import jsonx

__all__ = [
    "generate_request_id",
    "canonical_json", "sha256_hex", "prompt_fingerprint", "short_fp",
    "attach_health_routes",
    "jsonx",
]
