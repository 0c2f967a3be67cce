from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from bridge.api import run_from_yaml
from bridge.configuration import load_settings


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a notebook script from a YAML run config.")
    parser.add_argument("run_yaml", type=Path, help="Path to run YAML")
    parser.add_argument(
        "--settings",
        dest="settings_yaml",
        type=Path,
        default=None,
        help="Optional settings YAML (interpreter, timeout, database server)",
    )
    parser.add_argument("--debug", action="store_true", help="Log run lifecycle to stderr")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    if args.debug:
        logging.basicConfig(level=logging.DEBUG)

    settings = load_settings(args.settings_yaml)
    result = run_from_yaml(args.run_yaml, settings=settings)
    print(json.dumps(result.to_payload(), indent=2, default=str))
    raise SystemExit(1 if result.failed else 0)


if __name__ == "__main__":
    main()
