"""HTTP server adapter for the booking service.

Provides a simple HTTP server using Python's built-in http.server module,
running in a worker thread, with handlers scheduled on the asyncio event loop.

Protected routes accept API key authentication via the Authorization header
(Bearer token) or X-API-Key. The Stripe webhook is authenticated by its
signature instead.
"""

import asyncio
import hmac
import logging
import re
import urllib.parse
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any

from cineroom.core.errors import CheckoutError, PaymentGatewayError

from .receiver import AppReceiver, Request, Response, error_response

logger = logging.getLogger(__name__)

MAX_BODY_SIZE = 1024 * 1024
REQUEST_TIMEOUT_SECONDS = 30


@dataclass(frozen=True)
class Route:
    method: str
    pattern: re.Pattern[str]
    handler: str  # AppReceiver method name
    protected: bool = False


ROUTES: tuple[Route, ...] = (
    Route("GET", re.compile(r"^/health$"), "health"),
    Route("GET", re.compile(r"^/stripe_checkout/success$"), "checkout_success"),
    Route("GET", re.compile(r"^/stripe_checkout/cancel$"), "checkout_cancel"),
    Route("POST", re.compile(r"^/events/(?P<event_id>[^/]+)/payments$"), "create_payment", True),
    Route("POST", re.compile(r"^/webhooks/stripe$"), "stripe_webhook"),
    Route("GET", re.compile(r"^/admin/events$"), "list_events", True),
    Route("POST", re.compile(r"^/admin/events/(?P<event_id>[^/]+)/approve$"), "approve_event", True),
    Route("POST", re.compile(r"^/admin/events/(?P<event_id>[^/]+)/reject$"), "reject_event", True),
    Route(
        "POST",
        re.compile(r"^/admin/participations/(?P<participation_id>[^/]+)/check_in$"),
        "check_in",
        True,
    ),
    Route("GET", re.compile(r"^/mailers/?$"), "preview_index"),
    Route("GET", re.compile(r"^/mailers/(?P<preview>\w+)/(?P<email>\w+)$"), "preview_email"),
)


def match_route(method: str, path: str) -> tuple[Route | None, dict[str, str], bool]:
    """Find the route for a request.

    Returns:
        (route, path parameters, path_known). path_known is True when some
        route matches the path, even with another method.
    """
    path_known = False
    for route in ROUTES:
        match = route.pattern.match(path)
        if match is None:
            continue
        path_known = True
        if route.method == method:
            params = {k: urllib.parse.unquote(v) for k, v in match.groupdict().items()}
            return route, params, True
    return None, {}, path_known


def error_for_exception(exc: BaseException) -> Response:
    """Map an exception raised by a handler to an HTTP error response."""
    if isinstance(exc, LookupError):
        return error_response(404, str(exc))
    if isinstance(exc, CheckoutError):
        return error_response(422, str(exc))
    if isinstance(exc, PaymentGatewayError):
        return error_response(502, "Payment provider error. Please try again.")
    if isinstance(exc, ValueError):
        return error_response(400, str(exc))
    return error_response(500, "Internal server error")


def make_request_handler(
    receiver: AppReceiver,
    event_loop: asyncio.AbstractEventLoop,
    api_key: str | None,
    require_auth: bool,
) -> type[BaseHTTPRequestHandler]:
    """Factory to create an AppHTTPHandler class with instance-specific state.

    Dependencies are captured in a closure instead of class-level mutable state.

    Args:
        receiver: Receiver handling parsed requests
        event_loop: Event loop the async handlers run on
        api_key: Optional API key for authentication
        require_auth: Whether protected routes require authentication

    Returns:
        An AppHTTPHandler class configured with the provided dependencies
    """

    class AppHTTPHandler(BaseHTTPRequestHandler):
        """HTTP request handler routing requests to the receiver."""

        def _check_auth(self) -> bool:
            """Check if request is authenticated.

            Supports two authentication methods:
            1. Authorization: Bearer <api_key>
            2. X-API-Key: <api_key>

            Returns:
                True if authenticated or auth not required, False otherwise.
            """
            if not require_auth:
                return True

            if not api_key:
                return False

            auth_header = self.headers.get("Authorization", "")
            if auth_header.startswith("Bearer "):
                return hmac.compare_digest(auth_header[7:], api_key)

            api_key_header = self.headers.get("X-API-Key", "")
            if api_key_header:
                return hmac.compare_digest(api_key_header, api_key)

            return False

        def do_GET(self) -> None:
            self._handle("GET")

        def do_POST(self) -> None:
            self._handle("POST")

        def _handle(self, method: str) -> None:
            url = urllib.parse.urlsplit(self.path)
            route, path_params, path_known = match_route(method, url.path)
            if route is None:
                if path_known:
                    self._send(error_response(405, "Method not allowed"))
                else:
                    self._send(error_response(404, "Not found"))
                return

            if route.protected and not self._check_auth():
                self._send(error_response(401, "Unauthorized: invalid or missing API key"))
                return

            content_length = int(self.headers.get("Content-Length", 0) or 0)
            if content_length > MAX_BODY_SIZE:
                self._send(error_response(413, "Request body too large"))
                return
            body = self.rfile.read(content_length) if content_length > 0 else b""

            params = {
                key: values[0]
                for key, values in urllib.parse.parse_qs(url.query).items()
                if values
            }
            request = Request(
                method=method,
                path=url.path,
                params=params,
                path_params=path_params,
                headers=self.headers,
                body=body,
            )
            handler: Callable[[Request], Awaitable[Response]] = getattr(receiver, route.handler)
            self._send(self._run_async(handler(request)))

        def _run_async(self, coro: Awaitable[Response]) -> Response:
            """Run a handler coroutine on the event loop and wait for it."""
            future = asyncio.run_coroutine_threadsafe(coro, event_loop)  # type: ignore[arg-type]
            try:
                return future.result(timeout=REQUEST_TIMEOUT_SECONDS)
            except Exception as e:
                response = error_for_exception(e)
                if response.status >= 500:
                    # Full details stay server-side
                    logger.error(f"Error handling request {self.path}: {e}", exc_info=True)
                else:
                    logger.info(f"Request {self.path} failed with {response.status}: {e}")
                return response

        def _send(self, response: Response) -> None:
            self.send_response(response.status)
            self.send_header("Content-Type", response.content_type)
            self.send_header("Content-Length", str(len(response.body)))
            self.end_headers()
            self.wfile.write(response.body)

        def log_message(self, format: str, *args: Any) -> None:
            """Log HTTP request."""
            logger.debug(f"HTTP {self.client_address[0]}: {format % args}")

    return AppHTTPHandler


class AppHTTPServer:
    """HTTP server adapter.

    Serves the checkout, webhook, admin and preview routes.
    """

    def __init__(
        self,
        receiver: AppReceiver,
        host: str = "0.0.0.0",
        port: int = 3000,
        api_key: str | None = None,
        require_auth: bool = False,
    ):
        """Initialize the HTTP server.

        Args:
            receiver: AppReceiver instance to handle requests.
            host: Host to listen on (default 0.0.0.0).
            port: Port to listen on (default 3000, 0 picks a free port).
            api_key: Optional API key for authentication.
            require_auth: Whether to require authentication on protected routes.

        Raises:
            ValueError: If require_auth is set without an API key.
        """
        if require_auth and not api_key:
            raise ValueError(
                "require_auth=True but no API key provided; "
                "set API_KEY or disable REQUIRE_AUTH"
            )
        self.receiver = receiver
        self.host = host
        self.port = port
        self.api_key = api_key
        self.require_auth = require_auth
        self.server: HTTPServer | None = None
        self._server_task: asyncio.Task[None] | None = None

    @property
    def bound_port(self) -> int:
        """Port actually listened on (differs from port when port is 0)."""
        if self.server is None:
            return self.port
        return self.server.server_address[1]

    async def start(self) -> None:
        """Start the HTTP server."""
        handler_class = make_request_handler(
            receiver=self.receiver,
            event_loop=asyncio.get_running_loop(),
            api_key=self.api_key,
            require_auth=self.require_auth,
        )
        self.server = HTTPServer((self.host, self.port), handler_class)
        self._server_task = asyncio.create_task(self._run_server())
        logger.info(
            f"HTTP server started on {self.host}:{self.bound_port}"
            + (" (with API key authentication)" if self.require_auth else "")
        )

    async def _run_server(self) -> None:
        """Run the blocking server loop in a worker thread."""
        if not self.server:
            return

        try:
            await asyncio.to_thread(self.server.serve_forever)
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(f"HTTP server error: {e}", exc_info=True)

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self.server:
            await asyncio.to_thread(self.server.shutdown)
            self.server.server_close()
        if self._server_task:
            self._server_task.cancel()
            try:
                await self._server_task
            except asyncio.CancelledError:
                pass
        logger.info("HTTP server stopped")
