"""HTTP server for agent-names using stdlib http.server.

Routes:
    GET    /health                           — health check
    GET    /events?since=N&name=X            — audit trail
    GET    /names/{name}                     — resolve a live record
    GET    /names/{name}/available           — availability check
    GET    /names/{name}/price               — advisory fee
    GET    /names/{name}/token               — bound token id
    GET    /names/{name}/blob                — stored blob (base64)
    GET    /tokens/{id}                      — name and holder of a token
    POST   /names                            — register (operator)
    POST   /names/{name}/renew               — renew (operator)
    PUT    /names/{name}/soul                — update soul hash (operator)
    PUT    /names/{name}/payment-address     — update payment address (operator)
    PUT    /names/{name}/blob                — store blob (operator)
    POST   /tokens/{id}/transfer             — transfer a token (holder/approved)
    POST   /treasury/deposit                 — credit the treasury
    POST   /admin/operators                  — set an operator flag (admin)
    POST   /admin/pause                      — pause (admin)
    POST   /admin/unpause                    — unpause (admin)
    POST   /admin/withdraw                   — withdraw funds (admin)

The calling principal is taken from the ``X-Principal`` header.

Usage:
    python -m agent_names.server.app --port 8080
    python -m agent_names.server.app --config settings.json --log-level DEBUG
"""
from __future__ import annotations

import argparse
import json
import logging
import re
import urllib.parse
from http.server import BaseHTTPRequestHandler, HTTPServer

from agent_names.config import RegistrySettings
from agent_names.server import routes

logger = logging.getLogger(__name__)

PRINCIPAL_HEADER = "X-Principal"

_NAME_PATTERN = re.compile(r"^/names/([^/]+)$")
_NAME_ACTION_PATTERN = re.compile(r"^/names/([^/]+)/([a-z-]+)$")
_TOKEN_PATTERN = re.compile(r"^/tokens/(\d+)$")
_TOKEN_TRANSFER_PATTERN = re.compile(r"^/tokens/(\d+)/transfer$")


class AgentNamesHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the agent-names server.

    Implements routing for GET, POST and PUT across all supported
    endpoints. All request bodies and responses use JSON.
    """

    def log_message(self, format: str, *args: object) -> None:
        """Override to route access logs through the Python logging system."""
        logger.debug(format, *args)

    # ── GET ───────────────────────────────────────────────────────────────────

    def do_GET(self) -> None:
        """Handle all GET requests by routing on the URL path."""
        parsed = urllib.parse.urlparse(self.path)
        path = parsed.path.rstrip("/")
        params = urllib.parse.parse_qs(parsed.query)

        if path == "/health":
            self._send_json(*routes.handle_health())
            return
        if path == "/events":
            since_raw = self._first_param(params, "since") or "0"
            if not since_raw.isdigit():
                self._send_json(422, {"error": "Validation error", "detail": "since must be an integer"})
                return
            self._send_json(*routes.handle_events(int(since_raw), self._first_param(params, "name")))
            return

        match = _NAME_PATTERN.match(path)
        if match:
            self._send_json(*routes.handle_resolve(_unquote(match.group(1))))
            return

        match = _NAME_ACTION_PATTERN.match(path)
        if match:
            name, action = _unquote(match.group(1)), match.group(2)
            handlers = {
                "available": routes.handle_is_available,
                "price": routes.handle_get_price,
                "token": routes.handle_name_to_token,
                "blob": routes.handle_get_blob,
            }
            handler = handlers.get(action)
            if handler is not None:
                self._send_json(*handler(name))
                return

        match = _TOKEN_PATTERN.match(path)
        if match:
            self._send_json(*routes.handle_token_to_name(int(match.group(1))))
            return

        self._not_found("GET", path)

    # ── POST ──────────────────────────────────────────────────────────────────

    def do_POST(self) -> None:
        """Handle all POST requests by routing on the URL path."""
        parsed = urllib.parse.urlparse(self.path)
        path = parsed.path.rstrip("/")

        body = self._read_json_body()
        if body is None:
            return
        caller = self._caller()

        if path == "/names":
            self._send_json(*routes.handle_register(caller, body))
        elif path == "/admin/operators":
            self._send_json(*routes.handle_set_operator(caller, body))
        elif path == "/admin/pause":
            self._send_json(*routes.handle_pause(caller))
        elif path == "/admin/unpause":
            self._send_json(*routes.handle_unpause(caller))
        elif path == "/admin/withdraw":
            self._send_json(*routes.handle_withdraw(caller, body))
        elif path == "/treasury/deposit":
            self._send_json(*routes.handle_deposit(caller, body))
        else:
            match = _NAME_ACTION_PATTERN.match(path)
            if match and match.group(2) == "renew":
                self._send_json(*routes.handle_renew(caller, _unquote(match.group(1))))
                return
            match = _TOKEN_TRANSFER_PATTERN.match(path)
            if match:
                self._send_json(*routes.handle_transfer(caller, int(match.group(1)), body))
                return
            self._not_found("POST", path)

    # ── PUT ───────────────────────────────────────────────────────────────────

    def do_PUT(self) -> None:
        """Handle all PUT requests by routing on the URL path."""
        parsed = urllib.parse.urlparse(self.path)
        path = parsed.path.rstrip("/")

        body = self._read_json_body()
        if body is None:
            return
        caller = self._caller()

        match = _NAME_ACTION_PATTERN.match(path)
        if match:
            name, action = _unquote(match.group(1)), match.group(2)
            handlers = {
                "soul": routes.handle_update_soul,
                "payment-address": routes.handle_update_payment_address,
                "blob": routes.handle_store_blob,
            }
            handler = handlers.get(action)
            if handler is not None:
                self._send_json(*handler(caller, name, body))
                return

        self._not_found("PUT", path)

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _caller(self) -> str:
        return (self.headers.get(PRINCIPAL_HEADER) or "").strip()

    def _not_found(self, method: str, path: str) -> None:
        self._send_json(404, {"error": "Not found", "detail": f"No route for {method} {path}"})

    def _send_json(self, status: int, data: dict[str, object]) -> None:
        """Serialize *data* to JSON and send an HTTP response with *status*."""
        body = json.dumps(data, default=str).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _read_json_body(self) -> dict[str, object] | None:
        """Read and parse the JSON request body.

        Returns None (and sends a 400 error response) if parsing fails.
        """
        content_length = int(self.headers.get("Content-Length", 0))
        if content_length == 0:
            return {}

        raw = self.rfile.read(content_length)
        try:
            parsed = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            self._send_json(400, {"error": "Invalid JSON", "detail": str(exc)})
            return None
        if not isinstance(parsed, dict):
            self._send_json(400, {"error": "Invalid JSON", "detail": "Body must be a JSON object."})
            return None
        return parsed

    @staticmethod
    def _first_param(params: dict[str, list[str]], key: str) -> str | None:
        """Return the first value for *key* from query parameters, or None."""
        values = params.get(key)
        return values[0] if values else None


def _unquote(segment: str) -> str:
    return urllib.parse.unquote(segment)


def create_server(
    host: str = "0.0.0.0",
    port: int = 8080,
    settings: RegistrySettings | None = None,
) -> HTTPServer:
    """Create (but do not start) the agent-names HTTP server.

    Parameters
    ----------
    host:
        Bind address (default ``"0.0.0.0"`` — all interfaces).
    port:
        TCP port to listen on (default 8080).
    settings:
        If given, the shared registry is rebuilt with these settings.

    Returns
    -------
    HTTPServer
        A configured server instance ready to call ``serve_forever()`` on.
    """
    if settings is not None:
        routes.reset_state(settings=settings)
    server = HTTPServer((host, port), AgentNamesHandler)
    logger.info("agent-names server created at http://%s:%d", host, port)
    return server


def run_server(
    host: str = "0.0.0.0",
    port: int = 8080,
    settings: RegistrySettings | None = None,
) -> None:
    """Create and run the agent-names HTTP server (blocking)."""
    server = create_server(host=host, port=port, settings=settings)
    logger.info("Serving agent-names on http://%s:%d — press Ctrl-C to stop", host, port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down agent-names server.")
    finally:
        server.server_close()


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="agent-names HTTP server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    parser.add_argument("--port", type=int, default=8080, help="TCP port")
    parser.add_argument("--config", default=None, help="JSON settings file")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser


if __name__ == "__main__":
    args = _build_arg_parser().parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level))
    loaded = RegistrySettings.from_file(args.config) if args.config else None
    run_server(host=args.host, port=args.port, settings=loaded)
