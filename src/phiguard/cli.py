"""Command line tools for PHI Guard."""

import argparse
import json
import sys
from typing import List, Optional

from phiguard.config.compliance import check_compliance
from phiguard.security.encryption import generate_encryption_key


def _print_findings(title: str, findings: List[str], marker: str) -> None:
    if not findings:
        return
    print(f"\n{title} ({len(findings)}):")
    for finding in findings:
        print(f"   {marker} {finding}")


def run_check_compliance(as_json: bool = False) -> int:
    """Print the compliance self-check. Returns the process exit code."""
    status = check_compliance()

    if as_json:
        print(json.dumps(status.to_dict(), indent=2))
    else:
        print("=" * 70)
        print("HIPAA COMPLIANCE SELF-CHECK")
        print("=" * 70)
        _print_findings("Issues", status.issues, "✗")
        _print_findings("Warnings", status.warnings, "!")
        _print_findings("Recommendations", status.recommendations, "-")
        print()
        if status.is_compliant:
            print("✓ COMPLIANT")
        else:
            print("✗ NON-COMPLIANT: resolve the issues above before handling PHI")

    return 0 if status.is_compliant else 1


def run_generate_key() -> int:
    """Print a new master encryption secret."""
    print(generate_encryption_key())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="phiguard", description="HIPAA PHI protection utilities"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser(
        "check-compliance", help="Check the environment for HIPAA compliance"
    )
    check.add_argument("--json", action="store_true", help="Print findings as JSON")

    subparsers.add_parser("generate-key", help="Generate a new master encryption secret")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "check-compliance":
        return run_check_compliance(as_json=args.json)
    return run_generate_key()


if __name__ == "__main__":
    sys.exit(main())
