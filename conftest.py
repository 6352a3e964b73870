"""
Project-wide PyTest bootstrap

Responsibilities
────────────────
1.  Put every `*/src` directory on PYTHONPATH so tests can import the
    project’s packages without editable installs.
2.  Clear the upstream credential so every test starts in stub mode unless
    it injects its own OptionsSource.
"""

from pathlib import Path
import os, sys

# ── 1 · add all source roots to PYTHONPATH (prepend so we win over site-packages) ─
ROOT = Path(__file__).parent.resolve()
_paths = (
    [str(ROOT)]                                           # project root (tests.helpers)
    + [str(p) for p in (ROOT / "packages").glob("*/src")]   # packages/*/src
    + [str(p) for p in (ROOT / "services").glob("*/src")] # services/*/src
)
# Preserve order but ensure local paths take precedence
for _p in reversed(_paths):
    if _p not in sys.path:
        sys.path.insert(0, _p)

# ── 2 · environment glue (before any service module is imported) ──────────
os.environ["OPENAI_API_KEY"] = ""
os.environ.setdefault("HTTP_RETRY_BASE_MS", "1")
os.environ.setdefault("HTTP_RETRY_JITTER_MS", "1")
os.environ.setdefault("SERVICE_LOG_LEVEL", "INFO")
