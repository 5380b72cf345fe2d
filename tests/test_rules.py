import pytest

from passpolicy.core import PolicyEngine
from passpolicy.rules import (
    forbid_substring,
    max_repeat_run,
    min_unique_chars,
    no_personal_info,
    no_sequences,
)


def test_forbid_substring():
    rule = forbid_substring("1234", 'The password should not contain sequential numbers like "1234".')
    assert rule("weakpassword1234!") == 'The password should not contain sequential numbers like "1234".'
    assert rule("weakpassword124!") is None
    assert forbid_substring("abc")("xxabcxx") == 'The password should not contain "abc".'
    with pytest.raises(ValueError):
        forbid_substring("")


def test_no_sequences():
    rule = no_sequences()
    assert rule("pass1234word") is not None
    assert rule("xx9876yy") is not None
    assert rule("ABCDxx") is not None
    assert rule("a1b2c3d4e5") is None
    assert rule("Tr0ub4dor&3") is None
    assert no_sequences(min_len=3)("xx123") is not None


def test_no_personal_info():
    rule = no_personal_info(["Alice", "al", "  bob@example.com "])
    assert rule("MyNameIsALICE!1") is not None
    assert rule("hello-bob@example.com") is not None
    assert rule("always-valid-99") is None  # "al" is too short to count


def test_max_repeat_run():
    rule = max_repeat_run(2)
    assert rule("aab") is None
    assert rule("aaab") is not None
    assert max_repeat_run(4)("xaaaax") is None
    with pytest.raises(ValueError):
        max_repeat_run(0)


def test_min_unique_chars():
    rule = min_unique_chars(5)
    assert rule("abababab") is not None
    assert rule("abcdeabcde") is None


def test_rules_plug_into_engine():
    engine = PolicyEngine()
    engine.add_test("custom", no_sequences())
    engine.add_test("custom", no_personal_info(["alice"]))
    r = engine.evaluate("Alice-abcd-Xy9!")
    assert r.strong is False
    assert len(r.custom_test_errors) == 2
    assert r.failures_by_category()["custom"] == [0, 1]
