from __future__ import annotations
from typing import Sequence

from core_config.constants import STUB_OPTION_COUNT
from core_models import Bucket, NavigationRequest, Option, OptionsResult, StepInfo
from .normalizer import ALL_OPTIONS_LABEL

STUB_WARNING = "stub fallback active"
STUB_SPLIT_DIMENSION = "stub"
STUB_CONFIDENCE = 0.6
STUB_CONFIRM_REASON = (
    "Placeholder options are shown because the generator is unavailable; "
    "confirmation is offered once at least two levels are selected."
)


def build_stub_result(request: NavigationRequest, extra_warnings: Sequence[str] = ()) -> OptionsResult:
    """
    Deterministic placeholder result.  Pure: identical arguments always give
    an identical (byte-for-byte when serialized) result, and it never fails.
    """
    depth = request.depth
    base = request.domain
    options = [
        Option(
            id=f"{base}-{depth}-{i}",
            label=f"{base} option {depth}.{i}",
            description=f"Stub option for {base} at depth {depth}.",
            split_dimension=STUB_SPLIT_DIMENSION,
            confidence=STUB_CONFIDENCE,
        )
        for i in range(1, min(request.max_options, STUB_OPTION_COUNT) + 1)
    ]
    return OptionsResult(
        mode="stub",
        step=StepInfo(level0=base, path_labels=request.path_labels),
        options=options,
        buckets=[Bucket(label=ALL_OPTIONS_LABEL, option_ids=[o.id for o in options])],
        can_confirm_here=len(request.path) >= 2,
        confirm_reason=STUB_CONFIRM_REASON,
        warnings=[*extra_warnings, STUB_WARNING],
    )
