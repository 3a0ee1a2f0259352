#!/usr/bin/env python3
# CUI // SP-PROPIN
# Controlled by: Scope-to-SOW Server
# CUI Category: PROPIN
# Distribution: D
# POC: Scope-to-SOW System Administrator
"""Scope-to-SOW MCP Server — JSON-RPC 2.0 dispatch for the SOW builder.

Exposes two tools and one widget resource:
  - open_sow_builder   — Open the interactive SOW Builder widget (placeholder result)
  - generate_sow       — Validate project fields and render a Statement of Work
  - ui://widget/scope-sow.html — HTML widget that collects the fields

Every message is handled independently: configuration is loaded per request
and nothing is kept between calls. The HTTP transport lives in
tools/web/app.py; this module can also serve a local client on stdio
(newline-delimited JSON).

Usage:
    python tools/mcp/sow_server.py
    python tools/mcp/sow_server.py --config args/server_config.yaml
"""

import argparse
import copy
import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import yaml

BASE_DIR = Path(__file__).resolve().parent.parent.parent
CONFIG_PATH = Path(os.environ.get(
    "SOW_SERVER_CONFIG", str(BASE_DIR / "args" / "server_config.yaml")
))

sys.path.insert(0, str(BASE_DIR))

from tools.sow.sow_renderer import EmptySowDocument, build_sow_doc  # noqa: E402
from tools.sow.sow_schema import (  # noqa: E402
    GENERATE_SOW_INPUT_SCHEMA,
    SowValidationError,
    validate_sow_input,
)

logger = logging.getLogger("scope_sow.mcp")

# Newest first; the first entry is offered when the client asks for an unknown version
SUPPORTED_PROTOCOL_VERSIONS = ("2025-06-18", "2025-03-26", "2024-11-05")

# JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
RESOURCE_NOT_FOUND = -32002

DEFAULT_CONFIG = {
    "server": {
        "name": "scope-to-sow",
        "version": "0.1.0",
    },
    "widget": {
        "uri": "ui://widget/scope-sow.html",
        "name": "scope-sow-widget",
        "path": "public/widget.html",
        "mime_type": "text/html+skybridge",
        "prefers_border": True,
        "description": ("Fill a few fields to generate a client-ready "
                        "Statement of Work (SOW)."),
        "csp": {
            "connect_domains": [],
            "resource_domains": ["https://*.oaistatic.com"],
        },
    },
}


class JsonRpcError(Exception):
    """Protocol-level failure that becomes a JSON-RPC error response."""

    def __init__(self, code, message, data=None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


# =========================================================================
# HELPERS
# =========================================================================
def _now():
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _result(req_id, result):
    """Build a success response."""
    return {"jsonrpc": "2.0", "id": req_id, "result": result}


def _error(req_id, code, message, data=None):
    """Build an error response."""
    err = {"code": code, "message": message}
    if data:
        err["data"] = data
    return {"jsonrpc": "2.0", "id": req_id, "error": err}


def _merge(base, override):
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_server_config(path=None):
    """Load server and widget settings from YAML, merged over DEFAULT_CONFIG.

    A missing file is not an error: the defaults are used and a warning is
    logged. A malformed file raises yaml.YAMLError.
    """
    config_path = Path(path or CONFIG_PATH)
    if not config_path.exists():
        logger.warning("Server config not found at %s, using defaults", config_path)
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Server config must be a mapping: {config_path}")
    return _merge(DEFAULT_CONFIG, data)


def widget_path(config):
    """Absolute path of the widget HTML file named in the config."""
    path = Path(config["widget"]["path"])
    if not path.is_absolute():
        path = BASE_DIR / path
    return path


# =========================================================================
# TOOL / RESOURCE DEFINITIONS
# =========================================================================
def tool_definitions(config):
    """Tool list advertised by tools/list."""
    template = config["widget"]["uri"]
    return [
        {
            "name": "open_sow_builder",
            "title": "Open SOW Builder",
            "description": "Opens the interactive SOW Builder widget.",
            "inputSchema": {"type": "object", "properties": {}},
            "_meta": {
                "openai/outputTemplate": template,
                "openai/toolInvocation/invoking": "Opening SOW Builder…",
                "openai/toolInvocation/invoked": "SOW Builder ready."
            }
        },
        {
            "name": "generate_sow",
            "title": "Generate SOW",
            "description": "Generates a client-ready SOW from structured inputs.",
            "inputSchema": copy.deepcopy(GENERATE_SOW_INPUT_SCHEMA),
            "_meta": {
                "openai/outputTemplate": template,
                "openai/widgetAccessible": True,
                "openai/toolInvocation/invoking": "Generating SOW…",
                "openai/toolInvocation/invoked": "SOW generated."
            }
        },
    ]


def resource_definitions(config):
    """Resource list advertised by resources/list."""
    widget = config["widget"]
    return [{
        "uri": widget["uri"],
        "name": widget["name"],
        "description": widget["description"],
        "mimeType": widget["mime_type"],
    }]


# =========================================================================
# TOOL HANDLERS
# =========================================================================
def handle_open_sow_builder(params):
    """Open the widget with an empty document."""
    return {
        "content": [{"type": "text", "text": "SOW Builder opened."}],
        "structuredContent": EmptySowDocument().to_dict(),
        "_meta": {}
    }


def handle_generate_sow(params):
    """Validate arguments and render the SOW. Raises SowValidationError."""
    sow_input = validate_sow_input(params)
    doc = build_sow_doc(sow_input)
    logger.info("Generated '%s' (%d sections)", doc.title, len(doc.sections))
    return {
        "content": [{"type": "text", "text": f"Generated: {doc.title}"}],
        "structuredContent": doc.to_dict(),
        "_meta": {"generated_at": _now()}
    }


# Handler dispatch
HANDLERS = {
    "open_sow_builder": handle_open_sow_builder,
    "generate_sow": handle_generate_sow,
}


def read_widget(uri, config):
    """Return the resources/read result for the widget URI."""
    widget = config["widget"]
    if uri != widget["uri"]:
        raise JsonRpcError(RESOURCE_NOT_FOUND, "Resource not found", {"uri": uri})

    html = widget_path(config).read_text(encoding="utf-8")
    return {
        "contents": [{
            "uri": widget["uri"],
            "mimeType": widget["mime_type"],
            "text": html,
            "_meta": {
                "openai/widgetPrefersBorder": bool(widget["prefers_border"]),
                "openai/widgetDescription": widget["description"],
                "openai/widgetCSP": {
                    "connect_domains": list(widget["csp"].get("connect_domains") or []),
                    "resource_domains": list(widget["csp"].get("resource_domains") or []),
                }
            }
        }]
    }


def call_tool(params):
    """Run a tools/call request and return its result."""
    tool_name = params.get("name", "")
    tool_args = params.get("arguments") or {}
    if not isinstance(tool_name, str):
        raise JsonRpcError(INVALID_PARAMS, "Tool name must be a string")

    handler = HANDLERS.get(tool_name)
    if not handler:
        raise JsonRpcError(METHOD_NOT_FOUND, f"Unknown tool: {tool_name}")

    logger.info("tools/call %s", tool_name)
    try:
        return handler(tool_args)
    except SowValidationError as e:
        logger.warning("%s rejected: %s", tool_name, e)
        raise JsonRpcError(INVALID_PARAMS,
                           f"Invalid arguments for tool {tool_name}: {e}",
                           e.to_dict())


def _negotiate_version(params):
    requested = params.get("protocolVersion")
    if requested in SUPPORTED_PROTOCOL_VERSIONS:
        return requested
    return SUPPORTED_PROTOCOL_VERSIONS[0]


# =========================================================================
# MCP DISPATCH
# =========================================================================
def _dispatch(method, params, config):
    if method == "initialize":
        return {
            "protocolVersion": _negotiate_version(params),
            "capabilities": {
                "tools": {"listChanged": False},
                "resources": {"listChanged": False},
            },
            "serverInfo": {
                "name": config["server"]["name"],
                "version": str(config["server"]["version"])
            }
        }
    if method == "ping":
        return {}
    if method == "tools/list":
        return {"tools": tool_definitions(config)}
    if method == "tools/call":
        return call_tool(params)
    if method == "resources/list":
        return {"resources": resource_definitions(config)}
    if method == "resources/templates/list":
        return {"resourceTemplates": []}
    if method == "resources/read":
        return read_widget(params.get("uri", ""), config)
    raise JsonRpcError(METHOD_NOT_FOUND, f"Method not found: {method}")


def handle_request(msg, config=None):
    """Route one JSON-RPC message. Returns the response, or None for notifications."""
    if not isinstance(msg, dict):
        return _error(None, INVALID_REQUEST, "Invalid Request")

    req_id = msg.get("id")
    method = msg.get("method")
    is_notification = "id" not in msg

    if method is None and ("result" in msg or "error" in msg):
        return None  # Response from the client; nothing is awaiting it
    if msg.get("jsonrpc") != "2.0" or not isinstance(method, str):
        return _error(req_id, INVALID_REQUEST, "Invalid Request")
    if is_notification:
        if not method.startswith("notifications/"):
            logger.debug("Ignoring notification %s", method)
        return None

    params = msg.get("params") or {}
    if not isinstance(params, dict):
        return _error(req_id, INVALID_PARAMS, "params must be an object")

    try:
        if config is None:
            config = load_server_config()
        return _result(req_id, _dispatch(method, params, config))
    except JsonRpcError as e:
        return _error(req_id, e.code, e.message, e.data)
    except Exception:
        logger.exception("Unhandled error in %s", method)
        return _error(req_id, INTERNAL_ERROR, "Internal error")


def handle_payload(payload, config=None):
    """Handle a single message or a batch.

    Returns a response dict, a list of responses, or None when there is
    nothing to send back.
    """
    if isinstance(payload, list):
        if not payload:
            return _error(None, INVALID_REQUEST, "Invalid Request")
        responses = [r for r in (handle_request(m, config) for m in payload)
                     if r is not None]
        return responses or None
    return handle_request(payload, config)


# =========================================================================
# STDIO MAIN LOOP
# =========================================================================
def _send_message(msg):
    """Write one JSON-RPC message to stdout as a single line."""
    sys.stdout.write(json.dumps(msg, ensure_ascii=False) + "\n")
    sys.stdout.flush()


def main():
    """Run the MCP server on stdio."""
    global CONFIG_PATH

    parser = argparse.ArgumentParser(description="Scope-to-SOW MCP server (stdio)")
    parser.add_argument("--config", default=None, help="Server config YAML path")
    args = parser.parse_args()
    if args.config:
        CONFIG_PATH = Path(args.config)

    logging.basicConfig(
        level=logging.INFO,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    logger.info("Scope-to-SOW MCP server starting (stdio)")
    logger.info("Config: %s", CONFIG_PATH)

    for line in sys.stdin:
        line = line.strip()
        if not line:
            continue
        try:
            payload = json.loads(line)
        except (ValueError, RecursionError):
            # Oversized integers and deep nesting raise outside JSONDecodeError
            _send_message(_error(None, PARSE_ERROR, "Parse error"))
            continue

        response = handle_payload(payload)
        if response is not None:
            _send_message(response)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        pass
