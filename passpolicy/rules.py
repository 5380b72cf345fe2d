# -*- coding: utf-8 -*-
"""
Ready-made rules for PolicyEngine.add_test().

Each factory returns a callable taking the password and returning an error
message, or None when the password passes.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Optional

from .core import Rule


def _is_run(chunk: str) -> bool:
    inc = all(ord(chunk[i]) + 1 == ord(chunk[i + 1]) for i in range(len(chunk) - 1))
    dec = all(ord(chunk[i]) - 1 == ord(chunk[i + 1]) for i in range(len(chunk) - 1))
    return inc or dec


def _contains_sequence(s: str, min_len: int = 4) -> bool:
    # ascending or descending digit/letter runs: abcd, 4321
    if len(s) < min_len:
        return False
    lower = s.lower()
    for chunk in re.findall(r"\d+", lower) + re.findall(r"[a-z]+", lower):
        for start in range(len(chunk) - min_len + 1):
            if _is_run(chunk[start:start + min_len]):
                return True
    return False


def _max_run_length(s: str) -> int:
    # longest run of one repeated character (aaaa = 4)
    if not s:
        return 0
    best = 1
    run = 1
    for i in range(1, len(s)):
        if s[i] == s[i-1]:
            run += 1
            best = max(best, run)
        else:
            run = 1
    return best


def forbid_substring(fragment: str, message: Optional[str] = None) -> Rule:
    if not fragment:
        raise ValueError("fragment cannot be empty.")
    msg = message or f'The password should not contain "{fragment}".'

    def test(password: str) -> Optional[str]:
        if fragment in password:
            return msg
        return None

    test.__name__ = f"forbid_substring[{fragment}]"
    return test


def no_sequences(min_len: int = 4) -> Rule:
    if min_len < 2:
        raise ValueError("min_len must be 2 or greater.")

    def test(password: str) -> Optional[str]:
        if _contains_sequence(password, min_len):
            return f"The password may not contain sequences like 1234 or abcd ({min_len} or more characters)."
        return None

    test.__name__ = "no_sequences"
    return test


def no_personal_info(hints: Iterable[str]) -> Rule:
    """
    Reject passwords containing a user-specific hint (name, username, email).
    Hints shorter than 3 characters are ignored.
    """
    lowered: List[str] = [h.strip().lower() for h in hints if len(h.strip()) >= 3]

    def test(password: str) -> Optional[str]:
        low = password.lower()
        if any(h in low for h in lowered):
            return "The password may not contain personal information such as your name or email."
        return None

    test.__name__ = "no_personal_info"
    return test


def max_repeat_run(limit: int) -> Rule:
    if limit < 1:
        raise ValueError("limit must be 1 or greater.")

    def test(password: str) -> Optional[str]:
        if _max_run_length(password) > limit:
            return f"The password may not repeat a character more than {limit} times in a row."
        return None

    test.__name__ = "max_repeat_run"
    return test


def min_unique_chars(count: int) -> Rule:
    def test(password: str) -> Optional[str]:
        if len(set(password)) < count:
            return f"The password must contain at least {count} different characters."
        return None

    test.__name__ = "min_unique_chars"
    return test
