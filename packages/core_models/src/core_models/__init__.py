"""
core_models: canonical exports

Pydantic models for navigation requests and option results, plus the
input-error hierarchy raised at the request boundary.
"""

from .models import (
    PathStep, NavigationRequest,
    Option, Bucket, StepInfo, ResultMeta, OptionsResult,
)
from .errors import InputError, InvalidDomain, InvalidRequest

__all__ = [
    "PathStep", "NavigationRequest",
    "Option", "Bucket", "StepInfo", "ResultMeta", "OptionsResult",
    "InputError", "InvalidDomain", "InvalidRequest",
]
