#!/usr/bin/env python3
# CUI // SP-PROPIN
# Controlled by: Scope-to-SOW Server
# CUI Category: PROPIN
# Distribution: D
# POC: Scope-to-SOW System Administrator
"""Scope-to-SOW HTTP server — Flask transport for the MCP endpoint.

Routes:
    GET  /              — Plain-text liveness banner
    GET  /api/health    — JSON health check
    POST /mcp           — MCP JSON-RPC endpoint (single message or batch)
    GET|DELETE /mcp     — 405: the server is stateless, no stream or session
    GET  /<path>        — Files under public/ (widget HTML, domain verification)

Every /mcp request gets its own config and dispatch context; nothing is
shared between requests.

Usage:
    python tools/web/app.py [--port 8787] [--host 127.0.0.1] [--debug]
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, Response, jsonify, request, send_from_directory
from werkzeug.exceptions import ClientDisconnected

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Real environment variables win over .env
_env_path = BASE_DIR / ".env"
if _env_path.exists():
    load_dotenv(_env_path, override=False)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger("scope_sow")

sys.path.insert(0, str(BASE_DIR))

from tools.mcp.sow_server import (  # noqa: E402
    PARSE_ERROR,
    _error,
    handle_payload,
    load_server_config,
)

MCP_PATH = "/mcp"
DEFAULT_PORT = 8787
PUBLIC_DIR = Path(os.environ.get("SOW_PUBLIC_DIR", str(BASE_DIR / "public")))


class TransportError(Exception):
    """The request body could not be read from the connection."""


# =========================================================================
# APP SETUP
# =========================================================================
app = Flask(__name__, static_folder=None)


def _now():
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _text(body, status=200):
    return Response(body, status=status, mimetype="text/plain")


def _read_payload():
    """Read and decode the JSON-RPC body. Raises TransportError or ValueError."""
    try:
        raw = request.get_data(cache=False)
    except (ClientDisconnected, OSError) as e:
        raise TransportError(f"Failed to read request body: {e}") from e
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise TransportError("Request body is not valid UTF-8") from e
    return json.loads(text)


# =========================================================================
# ERROR HANDLERS
# =========================================================================
@app.errorhandler(404)
def page_not_found(e):
    return _text("Not Found", 404)


@app.errorhandler(405)
def method_not_allowed(e):
    # Only /mcp answers 405, from inside its own view
    return _text("Not Found", 404)


@app.errorhandler(500)
def internal_server_error(e):
    logger.error("500 Internal Server Error: %s", e)
    return _text("Internal server error", 500)


# =========================================================================
# HEALTH
# =========================================================================
@app.route("/")
def index():
    return _text("Scope-to-SOW MCP server")


@app.route("/api/health")
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "scope-to-sow",
        "mcp_path": MCP_PATH,
        "timestamp": _now(),
    })


# =========================================================================
# MCP ENDPOINT
# =========================================================================
@app.route(MCP_PATH, methods=["POST", "GET", "DELETE"])
@app.route(MCP_PATH + "/", methods=["POST", "GET", "DELETE"])
def mcp_endpoint():
    if request.method != "POST":
        resp = jsonify(_error(None, -32000, "Method not allowed."))
        resp.status_code = 405
        resp.headers["Allow"] = "POST"
        return resp

    try:
        payload = _read_payload()
    except TransportError as e:
        logger.error("MCP transport error: %s", e)
        return _text("Bad Request", 400)
    except (ValueError, RecursionError):
        return jsonify(_error(None, PARSE_ERROR, "Parse error")), 400

    try:
        config = load_server_config()
        response = handle_payload(payload, config)
    except Exception:
        logger.exception("Unhandled error on %s", MCP_PATH)
        return _text("Internal server error", 500)

    if response is None:
        return Response(status=202)
    return jsonify(response)


# =========================================================================
# PUBLIC FILES
# =========================================================================
@app.route("/<path:subpath>", methods=["GET"])
def public_file(subpath):
    """Serve a file from public/ verbatim, refusing paths that escape it."""
    mimetype = "text/html" if subpath.endswith(".html") else "text/plain"
    resp = send_from_directory(PUBLIC_DIR, subpath, mimetype=mimetype)
    resp.headers["Cache-Control"] = "no-store"
    return resp


# =========================================================================
# MAIN
# =========================================================================
if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Scope-to-SOW MCP server (HTTP)")
    parser.add_argument("--port", type=int,
                        default=int(os.environ.get("PORT", DEFAULT_PORT)))
    parser.add_argument("--host", default=os.environ.get("HOST", "127.0.0.1"))
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    logger.info("Scope-to-SOW MCP server listening on http://%s:%d%s",
                args.host, args.port, MCP_PATH)
    logger.info("Public files: %s", PUBLIC_DIR)
    app.run(host=args.host, port=args.port, debug=args.debug)
