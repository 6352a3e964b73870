"""
Strict normalization of an untrusted model payload into an ``OptionsResult``.

Returns a tagged verdict: ``Valid(result)`` when at least one usable option
survives, ``Invalid(reasons)`` otherwise.  Every repair that changes what the
model sent leaves a warning on the result.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from core_config.constants import MIN_OPTIONS_FLOOR
from core_models import Bucket, NavigationRequest, Option, OptionsResult, StepInfo

ALL_OPTIONS_LABEL = "All options"
DEFAULT_DESCRIPTION = ""
DEFAULT_SPLIT_DIMENSION = "N/A"
DEFAULT_CONFIDENCE = 0.5
DEFAULT_CONFIRM_REASON = "No confirmation guidance was provided for this level."

_TRUE_STRINGS = {"true", "yes", "1"}


@dataclass(frozen=True)
class Valid:
    result: OptionsResult


@dataclass(frozen=True)
class Invalid:
    reasons: Tuple[str, ...]


Verdict = Union[Valid, Invalid]


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    number = float(value)
    if math.isnan(number):
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, number))


def coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    if isinstance(value, (int, float)):
        return not math.isnan(value) and value != 0
    return False


def _option(entry: Any) -> Optional[Option]:
    if not isinstance(entry, Mapping):
        return None
    ident, label = _text(entry.get("id")), _text(entry.get("label"))
    if not ident or not label:
        return None
    return Option(
        id=ident,
        label=label,
        description=_text(entry.get("description")) or DEFAULT_DESCRIPTION,
        split_dimension=_text(entry.get("split_dimension")) or DEFAULT_SPLIT_DIMENSION,
        confidence=_confidence(entry.get("confidence")),
    )


def normalize_options(raw_options: List[Any], max_options: int) -> Tuple[List[Option], List[str]]:
    """Keep valid, first-seen options in source order; returns ``(options, warnings)``."""
    options: List[Option] = []
    seen: set[str] = set()
    invalid = duplicates = 0
    for entry in raw_options:
        opt = _option(entry)
        if opt is None:
            invalid += 1
            continue
        if opt.id in seen:
            duplicates += 1
            continue
        seen.add(opt.id)
        options.append(opt)

    warnings: List[str] = []
    if invalid:
        warnings.append(f"dropped {invalid} option(s) missing id or label")
    if duplicates:
        warnings.append(f"dropped {duplicates} duplicate option id(s)")
    if len(options) > max_options:
        warnings.append(f"truncated options from {len(options)} to {max_options}")
        options = options[:max_options]
    floor = min(MIN_OPTIONS_FLOOR, max_options)
    if options and len(options) < floor:
        warnings.append(f"only {len(options)} option(s) returned; expected at least {floor}")
    return options, warnings


def normalize_buckets(raw_buckets: Any, options: List[Option]) -> Tuple[List[Bucket], List[str]]:
    known = {o.id for o in options}
    buckets: List[Bucket] = []
    dropped = 0
    for entry in raw_buckets if isinstance(raw_buckets, list) else []:
        label = _text(entry.get("label")) if isinstance(entry, Mapping) else ""
        raw_ids = entry.get("option_ids") if isinstance(entry, Mapping) else None
        ids: List[str] = []
        for oid in raw_ids if isinstance(raw_ids, list) else []:
            oid = _text(oid)
            if oid in known and oid not in ids:
                ids.append(oid)
        if not label or not ids:
            dropped += 1
            continue
        buckets.append(Bucket(label=label, option_ids=ids))

    warnings: List[str] = []
    if dropped:
        warnings.append(f"dropped {dropped} bucket(s) without a label or known option ids")
    if not buckets:
        buckets = [Bucket(label=ALL_OPTIONS_LABEL, option_ids=[o.id for o in options])]
    return buckets, warnings


def _raw_warnings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [w.strip() for w in value if isinstance(w, str) and w.strip()]


def normalize(raw: Any, request: NavigationRequest) -> Verdict:
    if not isinstance(raw, Mapping):
        return Invalid(("payload is not a JSON object",))
    raw_options = raw.get("options")
    if not isinstance(raw_options, list):
        return Invalid(("payload has no options list",))

    options, option_warnings = normalize_options(raw_options, request.max_options)
    if not options:
        return Invalid(("no usable options",) + tuple(option_warnings))
    buckets, bucket_warnings = normalize_buckets(raw.get("buckets"), options)

    result = OptionsResult(
        mode="llm",
        step=StepInfo(level0=request.domain, path_labels=request.path_labels),
        options=options,
        buckets=buckets,
        can_confirm_here=coerce_bool(raw.get("can_confirm_here")),
        confirm_reason=_text(raw.get("confirm_reason")) or DEFAULT_CONFIRM_REASON,
        warnings=_raw_warnings(raw.get("warnings")) + option_warnings + bucket_warnings,
    )
    return Valid(result)


def summarize(verdict: Verdict) -> Dict[str, Any]:
    """Compact log fields for a verdict."""
    if isinstance(verdict, Invalid):
        return {"valid": False, "reasons": list(verdict.reasons)}
    r = verdict.result
    return {"valid": True, "option_count": len(r.options), "bucket_count": len(r.buckets),
            "warning_count": len(r.warnings)}
