#!/usr/bin/env python3
"""Check one or more scenario rule documents for authoring mistakes.

Usage:
    python scripts/validate_rules.py src/scenario_engine/content/rulesets/eco_pollution.json
    python scripts/validate_rules.py my_rules/*.json --strict

Exits with status 1 if any document has errors (or warnings, with --strict).
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from scenario_engine.validation import Severity, has_errors, validate_rules


def main() -> None:
    parser = argparse.ArgumentParser(description="Validate scenario rule JSON files.")
    parser.add_argument("files", type=Path, nargs="+", help="Rule document(s) to check")
    parser.add_argument("--strict", action="store_true", default=False, help="Treat warnings as failures")
    args = parser.parse_args()

    failed = False
    for path in args.files:
        print(f"{path}:")
        try:
            with open(path, encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            print(f"  [error] could not read file: {exc}")
            failed = True
            continue
        if not isinstance(raw, dict):
            print("  [error] a rule document must be a JSON object")
            failed = True
            continue

        issues = validate_rules(raw)
        if not issues:
            print("  OK")
            continue
        for issue in issues:
            print(f"  {issue}")

        warnings = sum(1 for i in issues if i.severity is Severity.WARNING)
        print(f"  {len(issues) - warnings} error(s), {warnings} warning(s)")
        if has_errors(issues) or (args.strict and warnings):
            failed = True

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
