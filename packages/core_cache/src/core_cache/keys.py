from __future__ import annotations

from core_models import NavigationRequest
from core_utils.fingerprints import short_fp

# ------------------------------
# Navigator keys (hard namespaced)
# ------------------------------
_NS_NAV = "nav:v1"

def options_key(request: NavigationRequest) -> str:
    """
    Cache key for one resolved options result.

    The path component is a fingerprint over path step **ids** only; labels
    never participate, so two requests that differ only in display labels
    share an entry.
    """
    if not isinstance(request, NavigationRequest):
        raise TypeError("options_key requires a sanitized NavigationRequest")
    return f"{_NS_NAV}:options:{request.domain}:{request.max_options}:{short_fp(*request.path_ids)}"
