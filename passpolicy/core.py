# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
import re
import threading
from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple


logger = logging.getLogger(__name__)

Rule = Callable[[str], Optional[str]]


# -------------------- Errors --------------------
class PasspolicyError(Exception):
    """Base class for passpolicy errors."""


class ConfigurationError(PasspolicyError, ValueError):
    """Raised when a policy configuration is rejected."""

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


# -------------------- Character classes --------------------
_LOWER = re.compile(r"[a-z]")
_UPPER = re.compile(r"[A-Z]")
_DIGIT = re.compile(r"[0-9]")
_SYMBOL = re.compile(r"[^A-Za-z0-9]")
_TRIPLE_REPEAT = re.compile(r"(.)\1{2,}")

def _has_upper(s: str) -> bool: return bool(_UPPER.search(s))
def _has_lower(s: str) -> bool: return bool(_LOWER.search(s))
def _has_digit(s: str) -> bool: return bool(_DIGIT.search(s))
def _has_symbol(s: str) -> bool: return bool(_SYMBOL.search(s))


# -------------------- Configuration --------------------
class TestCategory(str, Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    CUSTOM = "custom"


# camelCase keys accepted by configure() for payloads written against the JS API
_CAMEL_KEYS = {
    "allowPassphrases": "allow_passphrases",
    "maxLength": "max_length",
    "minLength": "min_length",
    "minPhraseLength": "min_phrase_length",
    "minOptionalTestsToPass": "min_optional_tests_to_pass",
}


@dataclass
class PolicyConfig:
    allow_passphrases: bool = True
    max_length: int = 128
    min_length: int = 10
    min_phrase_length: int = 20
    min_optional_tests_to_pass: int = 4

    @classmethod
    def option_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def problems(self, optional_rule_count: Optional[int] = None) -> List[str]:
        """
        List consistency problems. An empty list means the config is usable.
        optional_rule_count: when given, also check the optional threshold is reachable.
        """
        found: List[str] = []
        for name in ("max_length", "min_length", "min_phrase_length"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                found.append(f"{name} must be a positive integer (got {value!r}).")
        threshold = self.min_optional_tests_to_pass
        if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 0:
            found.append(f"min_optional_tests_to_pass must be a non-negative integer (got {threshold!r}).")
        elif optional_rule_count is not None and threshold > optional_rule_count:
            found.append(
                f"min_optional_tests_to_pass is {threshold} but only {optional_rule_count} optional tests exist."
            )
        if not isinstance(self.allow_passphrases, bool):
            found.append(f"allow_passphrases must be a boolean (got {self.allow_passphrases!r}).")
        if not found and self.min_length > self.max_length:
            found.append(f"min_length ({self.min_length}) is greater than max_length ({self.max_length}).")
        return found

    def validate(self, optional_rule_count: Optional[int] = None) -> None:
        found = self.problems(optional_rule_count)
        if found:
            raise ConfigurationError(found)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


POLICY_PRESETS: Dict[str, Dict[str, Any]] = {
    # OWASP defaults: passphrases of 20+ chars skip the character-class tests.
    "owasp": PolicyConfig().to_dict(),
    "strict": {
        "allow_passphrases": False,
        "max_length": 128,
        "min_length": 14,
        "min_phrase_length": 20,
        "min_optional_tests_to_pass": 4,
    },
    "relaxed": {
        "allow_passphrases": True,
        "max_length": 128,
        "min_length": 8,
        "min_phrase_length": 16,
        "min_optional_tests_to_pass": 3,
    },
}


# -------------------- Result --------------------
@dataclass
class EvaluationResult:
    errors: List[str] = field(default_factory=list)
    failed_tests: List[int] = field(default_factory=list)
    passed_tests: List[int] = field(default_factory=list)
    required_test_errors: List[str] = field(default_factory=list)
    optional_test_errors: List[str] = field(default_factory=list)
    custom_test_errors: List[str] = field(default_factory=list)
    is_passphrase: bool = False
    strong: bool = True
    optional_tests_passed: int = 0
    # (category, index) for every failure; failed_tests alone can't tell categories apart
    qualified_failures: List[Tuple[str, int]] = field(default_factory=list)

    def errors_for(self, category: TestCategory | str) -> List[str]:
        key = TestCategory(category)
        return {
            TestCategory.REQUIRED: self.required_test_errors,
            TestCategory.OPTIONAL: self.optional_test_errors,
            TestCategory.CUSTOM: self.custom_test_errors,
        }[key]

    def failures_by_category(self) -> Dict[str, List[int]]:
        out: Dict[str, List[int]] = {c.value: [] for c in TestCategory}
        for category, index in self.qualified_failures:
            out[category].append(index)
        return out

    def to_dict(self, camel_case: bool = False) -> Dict[str, Any]:
        data = {
            "errors": list(self.errors),
            "failed_tests": list(self.failed_tests),
            "passed_tests": list(self.passed_tests),
            "required_test_errors": list(self.required_test_errors),
            "optional_test_errors": list(self.optional_test_errors),
            "custom_test_errors": list(self.custom_test_errors),
            "is_passphrase": self.is_passphrase,
            "strong": self.strong,
            "optional_tests_passed": self.optional_tests_passed,
            "failures_by_category": self.failures_by_category(),
        }
        if not camel_case:
            return data
        return {_to_camel(k): v for k, v in data.items()}


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


# -------------------- Engine --------------------
class PolicyEngine:
    """
    Password policy evaluator with three rule categories.

    Required and custom rules must all pass. Optional rules are counted and
    the count must reach min_optional_tests_to_pass, unless the password is
    long enough to be treated as a passphrase (when allowed).

    configure() and add_test() are meant for setup time. evaluate() snapshots
    the rule lists under a lock, so it is safe to call from many threads.
    """

    def __init__(self, config: Optional[PolicyConfig] = None):
        self.config = config if config is not None else PolicyConfig()
        self._lock = threading.Lock()
        self._tests: Dict[TestCategory, List[Rule]] = {
            TestCategory.REQUIRED: [
                self._min_length_test,
                self._max_length_test,
                self._repeat_test,
            ],
            TestCategory.OPTIONAL: [
                self._lowercase_test,
                self._uppercase_test,
                self._digit_test,
                self._symbol_test,
            ],
            TestCategory.CUSTOM: [],
        }

    @classmethod
    def from_preset(cls, name: str, **overrides: Any) -> "PolicyEngine":
        if name not in POLICY_PRESETS:
            raise ConfigurationError([f"Unknown preset {name!r}; choose one of {sorted(POLICY_PRESETS)}."])
        engine = cls()
        engine.configure({**POLICY_PRESETS[name], **overrides})
        return engine

    # ---- built-in required tests ----
    # evaluate() binds its config snapshot; called bare they read the live config
    def _min_length_test(self, password: str, config: Optional[PolicyConfig] = None) -> Optional[str]:
        config = config or self.config
        if len(password) < config.min_length:
            return f"The password must be at least {config.min_length} characters long."
        return None

    def _max_length_test(self, password: str, config: Optional[PolicyConfig] = None) -> Optional[str]:
        config = config or self.config
        if len(password) > config.max_length:
            return f"The password must be fewer than {config.max_length} characters."
        return None

    def _bind_config(self, tests: List[Rule], config: PolicyConfig) -> List[Rule]:
        config_tests = (self._min_length_test, self._max_length_test)
        return [partial(test, config=config) if test in config_tests else test for test in tests]

    @staticmethod
    def _repeat_test(password: str) -> Optional[str]:
        if _TRIPLE_REPEAT.search(password):
            return "The password may not contain sequences of three or more repeated characters."
        return None

    # ---- built-in optional tests ----
    @staticmethod
    def _lowercase_test(password: str) -> Optional[str]:
        if not _has_lower(password):
            return "The password must contain at least one lowercase letter."
        return None

    @staticmethod
    def _uppercase_test(password: str) -> Optional[str]:
        if not _has_upper(password):
            return "The password must contain at least one uppercase letter."
        return None

    @staticmethod
    def _digit_test(password: str) -> Optional[str]:
        if not _has_digit(password):
            return "The password must contain at least one number."
        return None

    @staticmethod
    def _symbol_test(password: str) -> Optional[str]:
        if not _has_symbol(password):
            return "The password must contain at least one special character."
        return None

    # ---- administration ----
    def configure(self, params: Mapping[str, Any], strict: bool = False) -> None:
        """
        Merge recognized options into the config. Unknown keys are ignored.
        With strict=True the merged config is validated first and
        ConfigurationError leaves the engine untouched.
        """
        known = PolicyConfig.option_names()
        updates: Dict[str, Any] = {}
        ignored: List[str] = []
        for key, value in params.items():
            name = _CAMEL_KEYS.get(key, key)
            if name in known:
                updates[name] = value
            else:
                ignored.append(key)
        if ignored:
            logger.debug(f"configure: ignoring unrecognized options {ignored}")

        with self._lock:
            merged = replace(self.config, **updates)
            if strict:
                merged.validate(len(self._tests[TestCategory.OPTIONAL]))
            self.config = merged

    def add_test(self, category: TestCategory | str, rule: Rule) -> None:
        if category == TestCategory.REQUIRED:
            key = TestCategory.REQUIRED
        elif category == TestCategory.OPTIONAL:
            key = TestCategory.OPTIONAL
        else:
            key = TestCategory.CUSTOM
        with self._lock:
            self._tests[key].append(rule)
        logger.debug(f"add_test: registered {getattr(rule, '__name__', type(rule).__name__)} as {key.value}")

    def tests(self, category: TestCategory | str) -> List[Rule]:
        """Copy of the registered rules for a category."""
        with self._lock:
            return list(self._tests[TestCategory(category)])

    # ---- evaluation ----
    def evaluate(self, password: str) -> EvaluationResult:
        """
        Run every rule against the password and aggregate the verdict.

        Password content never raises. A rule that raises aborts the
        evaluation and its exception reaches the caller unchanged.
        """
        with self._lock:
            config = self.config
            required = self._bind_config(self._tests[TestCategory.REQUIRED], config)
            optional = list(self._tests[TestCategory.OPTIONAL])
            custom = list(self._tests[TestCategory.CUSTOM])

        result = EvaluationResult()
        # len() counts code points, no normalization
        result.is_passphrase = bool(config.allow_passphrases) and len(password) >= config.min_phrase_length

        _run_tests(required, password, result, TestCategory.REQUIRED)
        if not result.is_passphrase:
            _run_tests(optional, password, result, TestCategory.OPTIONAL)
        _run_tests(custom, password, result, TestCategory.CUSTOM)

        if not result.is_passphrase and result.optional_tests_passed < config.min_optional_tests_to_pass:
            result.strong = False

        logger.debug(
            f"evaluate: strong={result.strong} passphrase={result.is_passphrase} "
            f"failed={len(result.failed_tests)} optional_passed={result.optional_tests_passed}"
        )
        return result


def _run_tests(tests: List[Rule], password: str, result: EvaluationResult, category: TestCategory) -> None:
    category_errors = result.errors_for(category)
    for index, test in enumerate(tests):
        err = test(password)
        if isinstance(err, str):
            # optional failures only count against the pass threshold
            if category is not TestCategory.OPTIONAL:
                result.strong = False
            result.errors.append(err)
            category_errors.append(err)
            result.failed_tests.append(index)
            result.qualified_failures.append((category.value, index))
        else:
            result.passed_tests.append(index)
            if category is TestCategory.OPTIONAL:
                result.optional_tests_passed += 1
