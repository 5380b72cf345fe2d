from __future__ import annotations

import argparse
import json
import logging
import os
from typing import Any, Dict, List

from .core import POLICY_PRESETS, ConfigurationError, EvaluationResult, PolicyEngine
from .rules import forbid_substring, no_personal_info, no_sequences


def _dump(obj: Any, as_json: bool) -> None:
    if as_json:
        print(json.dumps(obj, ensure_ascii=False, indent=2))
    else:
        print(obj)


def print_report(result: EvaluationResult) -> None:
    print("Password Report:")
    print(f"  - Verdict: {'strong' if result.strong else 'weak'}")
    print(f"  - Passphrase: {'yes' if result.is_passphrase else 'no'}")
    print(f"  - Optional tests passed: {result.optional_tests_passed}")

    if result.errors:
        print("\nProblems:")
        for err in result.errors:
            print(f"  * {err}")


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if args.min_length is not None:
        out["min_length"] = args.min_length
    if args.max_length is not None:
        out["max_length"] = args.max_length
    if args.min_phrase_length is not None:
        out["min_phrase_length"] = args.min_phrase_length
    if args.min_optional is not None:
        out["min_optional_tests_to_pass"] = args.min_optional
    if args.no_passphrases:
        out["allow_passphrases"] = False
    return out


def build_engine(args: argparse.Namespace) -> PolicyEngine:
    engine = PolicyEngine.from_preset(args.preset)
    engine.configure(_overrides(args), strict=True)
    for fragment in args.forbid:
        if fragment:
            engine.add_test("custom", forbid_substring(fragment))
    if args.hint:
        engine.add_test("custom", no_personal_info(args.hint))
    if args.no_sequences:
        engine.add_test("custom", no_sequences())
    return engine


def main(argv: List[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="passpolicy", description="passpolicy: check passwords against an OWASP-style policy.")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_check = sub.add_parser("check", help="Evaluate a password against the policy.")
    p_check.add_argument("password", help="Password to evaluate (not stored).")
    p_check.add_argument("--preset", choices=sorted(POLICY_PRESETS), default="owasp")
    p_check.add_argument("--min-length", type=int)
    p_check.add_argument("--max-length", type=int)
    p_check.add_argument("--min-phrase-length", type=int)
    p_check.add_argument("--min-optional", type=int, help="Optional tests that must pass.")
    p_check.add_argument("--no-passphrases", action="store_true", help="Disable the passphrase exemption.")
    p_check.add_argument("--forbid", action="append", default=[], help="Substring to reject (custom test).")
    p_check.add_argument("--hint", action="append", default=[], help="Name/email/username to reject if included.")
    p_check.add_argument("--no-sequences", action="store_true", help="Reject runs like 1234 or abcd.")
    p_check.add_argument("--json", action="store_true")
    p_check.add_argument("--verbose", action="store_true")

    sub.add_parser("presets", help="List policy presets.")

    p_serve = sub.add_parser("serve", help="Run FastAPI server.")
    p_serve.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    p_serve.add_argument("--port", type=int, default=int(os.getenv("PORT", "5005")))
    p_serve.add_argument("--preset", choices=sorted(POLICY_PRESETS), default=None)

    args = p.parse_args(argv)

    if args.cmd == "check":
        if args.verbose:
            logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
        try:
            engine = build_engine(args)
        except ConfigurationError as e:
            p.error(str(e))
        result = engine.evaluate(args.password)
        if args.json:
            _dump(result.to_dict(camel_case=True), True)
        else:
            print_report(result)
        return 0 if result.strong else 1

    if args.cmd == "presets":
        _dump(POLICY_PRESETS, True)
        return 0

    if args.cmd == "serve":
        import uvicorn
        from .api import create_app
        app = create_app(preset=args.preset)
        uvicorn.run(app, host=args.host, port=args.port)
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
