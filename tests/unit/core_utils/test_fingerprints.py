from core_utils.fingerprints import prompt_fingerprint, short_fp, canonical_json


def test_prompt_fingerprint_is_order_independent():
    a = prompt_fingerprint({"x": 1, "y": [1, 2]})
    b = prompt_fingerprint({"y": [1, 2], "x": 1})
    assert a == b
    assert a.startswith("sha256:")


def test_canonical_json_sorted_compact():
    assert canonical_json({"b": 1, "a": 2}) == b'{"a":2,"b":1}'


def test_short_fp_separates_parts():
    assert short_fp("ab", "c") != short_fp("a", "bc")
    assert short_fp() != short_fp("")
    assert len(short_fp("x")) == 20
