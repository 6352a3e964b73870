from core_config.constants import (
    CACHE_TTL_SEC,
    STUB_CACHE_TTL_SEC,
    CACHE_MAX_ENTRIES,
    TIMEOUT_LLM_MS,
    timeout_for_stage,
)
from core_config.settings import Settings, get_settings


def test_settings_defaults_mirror_constants():
    """Settings defaults must mirror the shared constants."""
    s = get_settings()
    assert s.cache_ttl_sec == CACHE_TTL_SEC
    assert s.stub_cache_ttl_sec == STUB_CACHE_TTL_SEC
    assert s.cache_max_entries == CACHE_MAX_ENTRIES
    assert s.timeout_llm_ms == TIMEOUT_LLM_MS
    assert s.stub_cache_ttl_sec < s.cache_ttl_sec


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("NAV_CACHE_TTL_SEC", "30")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-test")
    monkeypatch.setenv("LLM_RETRIES", "3")
    s = get_settings()
    assert s.cache_ttl_sec == 30
    assert s.openai_model == "gpt-test"
    assert s.llm_retries == 3


def test_has_credential(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "   ")
    assert get_settings().has_credential is False
    assert Settings(OPENAI_API_KEY="sk-test").has_credential is True


def test_timeout_for_stage_seconds():
    assert timeout_for_stage("llm") == TIMEOUT_LLM_MS / 1000.0
    assert timeout_for_stage("unknown-stage") == TIMEOUT_LLM_MS / 1000.0
