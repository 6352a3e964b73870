"""
Global conftest for navigator tests.

1. A pretty unified-diff assertion helper for clearer dict-vs-dict failures.
2. Shared fixtures: a manual clock, isolated settings and a request factory.
"""

import json
import difflib

import pytest

from core_config import Settings
from core_models import NavigationRequest, PathStep
from tests.helpers.navigator_fakes import FakeClock


# --------------------------------------------------------------------------- #
# Pretty diff for dict comparisons                                            #
# --------------------------------------------------------------------------- #
def pytest_assertrepr_compare(op, left, right):
    """Pretty unified-diff output when comparing two dicts with ==."""
    if isinstance(left, dict) and isinstance(right, dict) and op == "==":
        lhs = json.dumps(left, indent=2, sort_keys=True).splitlines()
        rhs = json.dumps(right, indent=2, sort_keys=True).splitlines()
        return [""] + list(
            difflib.unified_diff(lhs, rhs, fromfile="left", tofile="right")
        )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(OPENAI_API_KEY="", NAV_CACHE_TTL_SEC=600, NAV_STUB_CACHE_TTL_SEC=60,
                    NAV_CACHE_MAX_ENTRIES=500)


@pytest.fixture
def make_request():
    """Build a NavigationRequest; string path entries become ``{id: s, label: s.title()}``."""
    def _make(domain: str = "services", path=(), max_options: int = 10) -> NavigationRequest:
        steps = tuple(PathStep(id=p, label=p.title()) if isinstance(p, str) else p for p in path)
        return NavigationRequest(domain=domain, path=steps, max_options=max_options)
    return _make
