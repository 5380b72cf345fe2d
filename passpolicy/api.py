from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from . import __version__
from .core import POLICY_PRESETS, ConfigurationError, PolicyEngine
from .rules import forbid_substring, no_personal_info, no_sequences


logger = logging.getLogger(__name__)


class EvaluateRequest(BaseModel):
    password: str = Field(..., description="Password to evaluate. Never stored or logged.")
    preset: Optional[str] = Field(default=None, description="owasp|strict|relaxed")
    config: Optional[Dict[str, Any]] = Field(default=None, description="Config overrides (snake_case or camelCase keys).")
    forbid: List[str] = Field(default_factory=list, description="Substrings to reject as custom tests.")
    hints: List[str] = Field(default_factory=list, description="Personal hints (name/email) to reject as a custom test.")
    no_sequences: bool = Field(default=False, description="Reject 1234/abcd style runs as a custom test.")

    def needs_own_engine(self) -> bool:
        return bool(self.preset or self.config or self.forbid or self.hints or self.no_sequences)


def build_engine(req: EvaluateRequest, default_preset: str) -> PolicyEngine:
    engine = PolicyEngine.from_preset(req.preset or default_preset)
    if req.config:
        engine.configure(req.config, strict=True)
    for fragment in req.forbid:
        if fragment:
            engine.add_test("custom", forbid_substring(fragment))
    if req.hints:
        engine.add_test("custom", no_personal_info(req.hints))
    if req.no_sequences:
        engine.add_test("custom", no_sequences())
    return engine


def create_app(preset: Optional[str] = None) -> FastAPI:
    app = FastAPI(
        title="passpolicy API",
        version=__version__,
        description="OWASP-style password policy checks: required, optional and custom tests.",
    )

    default_preset = preset or os.getenv("PASSPOLICY_PRESET", "owasp")
    # Shared engine for plain requests; never mutated after startup.
    shared = PolicyEngine.from_preset(default_preset)

    @app.get("/")
    def root() -> Dict[str, Any]:
        return {
            "tool": "passpolicy",
            "version": __version__,
            "preset": default_preset,
            "endpoints": ["/health", "/policies", "/evaluate"],
            "note": "This API never stores or logs passwords.",
        }

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/policies")
    def policies() -> Dict[str, Any]:
        return {"presets": POLICY_PRESETS, "default": default_preset}

    @app.post("/evaluate")
    def evaluate(req: EvaluateRequest) -> Dict[str, Any]:
        t0 = time.time()
        if req.needs_own_engine():
            try:
                engine = build_engine(req, default_preset)
            except ConfigurationError as e:
                raise HTTPException(status_code=422, detail=e.problems)
        else:
            engine = shared

        result = engine.evaluate(req.password)
        out = result.to_dict(camel_case=True)
        out["config"] = engine.config.to_dict()
        out["elapsedMs"] = int((time.time() - t0) * 1000)
        logger.info(
            f"evaluate: strong={result.strong} failed={len(result.failed_tests)} "
            f"optional_passed={result.optional_tests_passed}"
        )
        return out

    return app
