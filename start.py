#!/usr/bin/env python3
# CUI // SP-PROPIN
"""Scope-to-SOW startup script.

Checks the config and widget before serving, so a broken setup fails at
launch instead of on the first resources/read:
  1. args/server_config.yaml parses and its top level is a mapping
  2. The widget HTML file it points to exists

Usage:
  python start.py                   # validate + start the HTTP server
  python start.py --port 8788       # override port (default: $PORT or 8787)
  python start.py --config my.yaml  # use another server config
  python start.py --validate-only   # check without starting the server
"""

import argparse
import os
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent
APP_ENV_PATH = BASE_DIR / ".env"
if APP_ENV_PATH.exists():
    load_dotenv(APP_ENV_PATH, override=False)

sys.path.insert(0, str(BASE_DIR))

import tools.mcp.sow_server as sow_server  # noqa: E402


def validate_setup(config_path: Path) -> list:
    """Check the server config and widget file. Returns a list of problems."""
    if not config_path.exists():
        print(f"  note: {config_path} not found, using built-in defaults")

    try:
        config = sow_server.load_server_config(config_path)
    except (yaml.YAMLError, ValueError) as e:
        return [f"Config {config_path} is invalid: {e}"]

    html_path = sow_server.widget_path(config)
    if not html_path.is_file():
        return [f"Widget HTML not found: {html_path}"]

    server = config["server"]
    print(f"  ok: {server['name']} v{server['version']}, "
          f"widget {config['widget']['uri']} from {html_path}")
    return []


def run(args) -> int:
    config_path = Path(args.config) if args.config else sow_server.CONFIG_PATH

    print(f"Scope-to-SOW: checking {config_path}")
    problems = validate_setup(config_path)
    for problem in problems:
        print(f"ERROR: {problem}", file=sys.stderr)
    if problems:
        return 1
    if args.validate_only:
        return 0

    # The HTTP app loads config per request from this path
    sow_server.CONFIG_PATH = config_path
    from tools.web.app import MCP_PATH, app

    print(f"Scope-to-SOW: serving http://{args.host}:{args.port}{MCP_PATH}")
    app.run(host=args.host, port=args.port, debug=args.debug)
    return 0


def main():
    parser = argparse.ArgumentParser(description="Scope-to-SOW startup")
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", 8787)))
    parser.add_argument("--host", default=os.environ.get("HOST", "127.0.0.1"))
    parser.add_argument("--config", default=None,
                        help="Server config YAML (default: args/server_config.yaml)")
    parser.add_argument("--validate-only", action="store_true",
                        help="Check config and widget, then exit")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()
    sys.exit(run(args))


if __name__ == "__main__":
    main()
