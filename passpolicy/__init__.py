from __future__ import annotations

__version__ = "1.0.0"

from .core import (
    POLICY_PRESETS,
    ConfigurationError,
    EvaluationResult,
    PasspolicyError,
    PolicyConfig,
    PolicyEngine,
    Rule,
    TestCategory,
)

__all__ = [
    "POLICY_PRESETS",
    "ConfigurationError",
    "EvaluationResult",
    "PasspolicyError",
    "PolicyConfig",
    "PolicyEngine",
    "Rule",
    "TestCategory",
    "__version__",
]
