from __future__ import annotations

import argparse
from dataclasses import asdict
from datetime import date, datetime
import json
import logging
from typing import Any

from govguard.core.config import get_settings
from govguard.services.security import generate_threat_model


def _json_default(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Unserializable value: {type(value).__name__}")


def _build_parser() -> argparse.ArgumentParser:
    # Seed output is meant to be piped into whatever store owns the threat register.
    parser = argparse.ArgumentParser(description="Print the default AI threat model for a project")
    parser.add_argument("--project", required=True, help="Project id")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=get_settings().log_level)
    items = generate_threat_model(args.project)
    print(json.dumps([asdict(item) for item in items], indent=2, default=_json_default))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
