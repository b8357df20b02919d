from __future__ import annotations

import argparse
import logging
from pathlib import Path

from sutcontrol.agent.app import run_forever


def main(argv: list[str] | None = None, *, runner=run_forever) -> None:
    p = argparse.ArgumentParser(description="SUT control agent for protocol test suites")
    p.add_argument("--config", default=None, type=Path, help="Path to agent_config.json (default: built-in settings)")
    p.add_argument(
        "--schemas-base-dir",
        default=Path("doc/schemas"),
        type=Path,
        help="Directory containing *.schema.json",
    )
    p.add_argument("--host", default=None, help="Listen address (overrides config)")
    p.add_argument("--port", default=None, type=int, help="Listen port (overrides config)")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = p.parse_args(argv)

    logging.basicConfig(level=args.log_level, format="%(levelname)s:%(name)s:%(message)s")

    runner(
        config_path=args.config,
        schemas_base_dir=args.schemas_base_dir,
        host=args.host,
        port=args.port,
    )


if __name__ == "__main__":
    main()
