from .logger import (
    get_logger,
    log_stage,
    bind_request_id,
    current_request_id,
    log_once_process,
    record_error,
    cache_key_fp,
    log_cache_hit,
    log_cache_miss,
    log_cache_join,
    log_cache_set,
    log_cache_evict,
)

__all__ = [
    "get_logger",
    "log_stage",
    "bind_request_id",
    "current_request_id",
    "log_once_process",
    "record_error",
    "cache_key_fp",
    "log_cache_hit",
    "log_cache_miss",
    "log_cache_join",
    "log_cache_set",
    "log_cache_evict",
]
