"""Validate a rule catalog file and list its rules with their specificity."""

from __future__ import annotations

import argparse
import sys

from sunrise.core.errors import InvalidRuleDefinition
from sunrise.core.rules import load_rule_catalog
from sunrise.services.scoring import specificity


def main() -> int:
    parser = argparse.ArgumentParser(description="Check a weather rule catalog.")
    parser.add_argument("path", nargs="?", default=None, help="Catalog YAML (default: packaged catalog).")
    args = parser.parse_args()

    try:
        catalog = load_rule_catalog(args.path)
    except InvalidRuleDefinition as exc:
        print(f"Invalid catalog: {exc}", file=sys.stderr)
        return 1

    catch_all = [rule.name for rule in catalog if not rule.conditions]
    print(f"{len(catalog)} rules, {len(catalog.condition_groups)} condition groups")
    if not catch_all:
        print("WARNING: no unconditional rule; some days will match nothing.", file=sys.stderr)
    for rule in catalog:
        kinds = ", ".join(condition.kind for condition in rule.conditions) or "(always)"
        print(f"{specificity(rule):6.2f}  {rule.name}  [{kinds}]")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
