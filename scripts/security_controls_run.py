from __future__ import annotations

import argparse
from dataclasses import asdict
from datetime import date, datetime
import json
import logging
from pathlib import Path
import sys
from typing import Any

from govguard.core.config import get_settings
from govguard.core.errors import SnapshotValidationError
from govguard.services.security import (
    SecurityCheckInput,
    demo_snapshot,
    describe_control_run,
    evaluate_security_controls,
    parse_snapshot,
)


def _json_default(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Unserializable value: {type(value).__name__}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Evaluate security controls for a project snapshot")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--snapshot", type=Path, help="Path to a JSON configuration snapshot")
    source.add_argument("--demo", action="store_true", help="Evaluate the built-in demo snapshot")
    parser.add_argument("--project", default="demo-project", help="Project id for --demo")
    parser.add_argument("--fail-on-fail", action="store_true", help="Exit 1 when any control fails")
    return parser


def _load_snapshot(args: argparse.Namespace) -> SecurityCheckInput:
    if args.demo:
        return demo_snapshot(args.project)
    raw = json.loads(args.snapshot.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise SnapshotValidationError("Configuration snapshot must be a JSON object")
    return parse_snapshot(raw)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=get_settings().log_level)
    try:
        snapshot = _load_snapshot(args)
    except (SnapshotValidationError, OSError, json.JSONDecodeError) as exc:
        print(f"security_controls_run failed: {exc}", file=sys.stderr)
        return 2
    status = evaluate_security_controls(snapshot)
    payload = {
        "status": asdict(status),
        "audit_event": describe_control_run(status, project_id=snapshot.project_id),
    }
    print(json.dumps(payload, indent=2, default=_json_default))
    if args.fail_on_fail and status.failed > 0:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
