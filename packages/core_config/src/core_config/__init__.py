from .settings import Settings, get_settings
from .constants import timeout_for_stage

__all__ = ["Settings", "get_settings", "timeout_for_stage"]
