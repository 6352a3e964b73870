import pytest

from navigator.normalizer import (
    ALL_OPTIONS_LABEL, DEFAULT_CONFIRM_REASON, Invalid, Valid, coerce_bool, normalize,
)
from tests.helpers.navigator_fakes import sample_payload


def _valid(raw, request) -> "Valid":
    verdict = normalize(raw, request)
    assert isinstance(verdict, Valid), verdict
    return verdict


def test_well_formed_payload(make_request):
    req = make_request(path=["home"])
    r = _valid(sample_payload(8), req).result
    assert r.mode == "llm"
    assert r.step.level0 == "services"
    assert r.step.path_labels == ["Home"]
    assert [o.id for o in r.options] == [f"opt-{i}" for i in range(1, 9)]
    assert [b.label for b in r.buckets] == ["First", "Second"]
    assert r.confirm_reason == "Keep drilling down."
    assert r.warnings == []


@pytest.mark.parametrize("raw", [None, [], "text", 3])
def test_non_object_payload_is_invalid(raw, make_request):
    assert isinstance(normalize(raw, make_request()), Invalid)


def test_missing_options_list_is_invalid(make_request):
    verdict = normalize({"options": "nope"}, make_request())
    assert isinstance(verdict, Invalid)
    assert verdict.reasons


def test_no_usable_options_is_invalid(make_request):
    verdict = normalize({"options": [{"id": "", "label": "x"}, {"label": "y"}, "z"]}, make_request())
    assert isinstance(verdict, Invalid)
    assert "no usable options" in verdict.reasons


def test_invalid_and_duplicate_entries_dropped_with_warnings(make_request):
    raw = {"options": [
        {"id": "a", "label": "A"},
        {"id": "a", "label": "A duplicate"},
        {"id": "  ", "label": "blank id"},
        {"id": "b", "label": ""},
        "garbage",
        {"id": " c ", "label": " C "},
    ] + [{"id": f"x{i}", "label": f"X{i}"} for i in range(6)]}
    r = _valid(raw, make_request()).result
    assert r.option_ids[:3] == ["a", "c", "x0"]
    assert r.options[0].label == "A"
    assert r.options[1].label == "C"
    assert any("missing id or label" in w for w in r.warnings)
    assert any("duplicate" in w for w in r.warnings)


def test_defaults_and_confidence_clamp(make_request):
    raw = {"options": [
        {"id": "a", "label": "A"},
        {"id": "b", "label": "B", "confidence": 7},
        {"id": "c", "label": "C", "confidence": -1},
        {"id": "d", "label": "D", "confidence": "0.9"},
        {"id": "e", "label": "E", "confidence": True},
        {"id": "f", "label": "F", "confidence": 0.25, "description": 5, "split_dimension": " "},
    ]}
    opts = {o.id: o for o in _valid(raw, make_request()).result.options}
    assert opts["a"].description == ""
    assert opts["a"].split_dimension == "N/A"
    assert opts["a"].confidence == 0.5
    assert opts["b"].confidence == 1.0
    assert opts["c"].confidence == 0.0
    assert opts["d"].confidence == 0.5
    assert opts["e"].confidence == 0.5
    assert opts["f"].confidence == 0.25
    assert opts["f"].description == ""
    assert opts["f"].split_dimension == "N/A"


def test_truncation_to_max_options(make_request):
    r = _valid(sample_payload(12), make_request(max_options=7)).result
    assert len(r.options) == 7
    assert any(w.startswith("truncated options from 12 to 7") for w in r.warnings)
    for b in r.buckets:
        assert set(b.option_ids) <= set(r.option_ids)


def test_low_count_warning_is_non_fatal(make_request):
    r = _valid(sample_payload(3), make_request(max_options=10)).result
    assert len(r.options) == 3
    assert any("expected at least 6" in w for w in r.warnings)


def test_low_count_threshold_respects_small_max(make_request):
    r = _valid(sample_payload(3), make_request(max_options=3)).result
    assert not any("expected at least" in w for w in r.warnings)


def test_buckets_filtered_to_known_ids(make_request):
    raw = sample_payload(6)
    raw["buckets"] = [
        {"label": "Mixed", "option_ids": ["opt-1", "ghost", "opt-1", "opt-2"]},
        {"label": "Ghosts", "option_ids": ["ghost"]},
        {"label": "", "option_ids": ["opt-3"]},
        {"option_ids": ["opt-4"]},
        "bad",
    ]
    r = _valid(raw, make_request()).result
    assert [(b.label, b.option_ids) for b in r.buckets] == [("Mixed", ["opt-1", "opt-2"])]
    assert any("dropped 4 bucket" in w for w in r.warnings)


def test_all_options_bucket_synthesized(make_request):
    raw = sample_payload(6)
    raw["buckets"] = [{"label": "Nothing", "option_ids": ["nope"]}]
    r = _valid(raw, make_request()).result
    assert len(r.buckets) == 1
    assert r.buckets[0].label == ALL_OPTIONS_LABEL
    assert r.buckets[0].option_ids == r.option_ids

    del raw["buckets"]
    r = _valid(raw, make_request()).result
    assert [b.label for b in r.buckets] == [ALL_OPTIONS_LABEL]


def test_raw_warnings_come_first(make_request):
    raw = sample_payload(12)
    raw["warnings"] = ["model note", 3, "  "]
    r = _valid(raw, make_request(max_options=10)).result
    assert r.warnings[0] == "model note"
    assert r.warnings[1].startswith("truncated")


def test_confirm_fields(make_request):
    raw = sample_payload(6)
    raw["can_confirm_here"] = "yes"
    raw["confirm_reason"] = ""
    r = _valid(raw, make_request()).result
    assert r.can_confirm_here is True
    assert r.confirm_reason == DEFAULT_CONFIRM_REASON


@pytest.mark.parametrize("value, expected", [
    (True, True), (False, False), ("true", True), ("YES", True), ("1", True),
    ("no", False), ("", False), (1, True), (0, False), (None, False), ([1], False),
])
def test_coerce_bool(value, expected):
    assert coerce_bool(value) is expected
