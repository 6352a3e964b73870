"""
Request boundary: turns an untrusted JSON body into a ``NavigationRequest``.

* ``level0`` (alias ``domain``) must name one of the allowed domains after
  trim + lowercase, otherwise :class:`InvalidDomain` is raised.
* ``path`` entries are ``{id, label}`` objects or bare strings (used as both
  id and label).  Each field loses control characters, is trimmed and capped;
  entries left without a non-empty id or label are dropped, as is anything
  beyond the depth cap.
* ``max_options`` is coerced to a finite number (default when missing or not
  finite) and clamped to ``[1, MAX_OPTIONS_LIMIT]``.
"""
from __future__ import annotations

import math
import re
from typing import Any, List, Mapping, Optional, Tuple

from core_config.constants import (
    ALLOWED_DOMAINS,
    DEFAULT_MAX_OPTIONS,
    MAX_OPTIONS_LIMIT,
    PATH_FIELD_MAX_CHARS,
    PATH_MAX_DEPTH,
)
from core_models import NavigationRequest, PathStep, InvalidDomain, InvalidRequest
from .logging_helpers import stage


def normalize_domain(value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidDomain(f"invalid level0: {value!r}")
    domain = value.strip().lower()
    if domain not in ALLOWED_DOMAINS:
        raise InvalidDomain(f"invalid level0: {value!r}")
    return domain


_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def _clean_field(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return _CONTROL_CHARS.sub("", value).strip()[:PATH_FIELD_MAX_CHARS].strip()


def _path_step(entry: Any) -> Optional[PathStep]:
    if isinstance(entry, str):
        ident = label = _clean_field(entry)
    elif isinstance(entry, Mapping):
        ident = _clean_field(entry.get("id"))
        label = _clean_field(entry.get("label"))
    else:
        return None
    if not ident or not label:
        return None
    return PathStep(id=ident, label=label)


def sanitize_path(value: Any) -> Tuple[Tuple[PathStep, ...], int]:
    """Return ``(steps, dropped_count)``; a non-list ``path`` counts as empty."""
    if not isinstance(value, (list, tuple)):
        return (), 0
    steps: List[PathStep] = []
    dropped = 0
    for entry in value:
        step = _path_step(entry)
        if step is None or len(steps) >= PATH_MAX_DEPTH:
            dropped += 1
            continue
        steps.append(step)
    return tuple(steps), dropped


def clamp_max_options(value: Any) -> int:
    number: float
    if isinstance(value, bool) or value is None:
        number = math.nan
    elif isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            number = math.nan
    else:
        number = math.nan
    if not math.isfinite(number):
        number = DEFAULT_MAX_OPTIONS
    return max(1, min(MAX_OPTIONS_LIMIT, int(number)))


def sanitize_request(raw: Any) -> NavigationRequest:
    """Validate and clamp *raw*; raises ``InputError`` subclasses on fatal input."""
    if not isinstance(raw, Mapping):
        raise InvalidRequest("request body must be a JSON object")
    domain = normalize_domain(raw.get("level0", raw.get("domain")))
    path, dropped = sanitize_path(raw.get("path"))
    max_options = clamp_max_options(raw.get("max_options", raw.get("maxOptions")))
    if dropped:
        stage("sanitize", "sanitize.path_dropped", dropped=dropped, kept=len(path))
    return NavigationRequest(domain=domain, path=path, max_options=max_options)
