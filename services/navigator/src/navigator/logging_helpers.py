from __future__ import annotations
from typing import Any
from core_logging import log_stage as _log_stage, get_logger

_logger = get_logger("navigator")

def stage(stage_name: str, action: str, /, **fields: Any) -> None:
    """
    Thin wrapper around core_logging.log_stage with a stable envelope.
    Signature: stage(stage_name, action, **fields)
    """
    _log_stage(_logger, stage_name, action, service="navigator", **fields)
