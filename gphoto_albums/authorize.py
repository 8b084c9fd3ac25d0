"""Interactive OAuth2 authorization-code grant.

The redirect is caught by a local listener that lives only for the duration of
one flow: it answers the first request on the redirect path, hands the code to
the waiting caller and is torn down before the code is exchanged.
"""

from __future__ import annotations

import threading
import webbrowser
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Optional
from urllib.parse import parse_qs, quote, urlencode, urlsplit

import requests
from loguru import logger

from .config import ClientConfig
from .credential import Credential
from .errors import AuthorizationDenied, AuthorizationTimeout, CodeExchangeFailed, ListenerBindFailed
from .utils import Clock, now_ms


SUCCESS_PAGE = "Authentication successful! Return to the console/terminal."
DEFAULT_CALLBACK_TIMEOUT_S = 300.0
DEFAULT_EXCHANGE_TIMEOUT_S = 30.0


def build_authorization_url(config: ClientConfig) -> str:
    query = urlencode(
        {
            "access_type": "offline",
            "scope": " ".join(config.scopes),
            "response_type": "code",
            "client_id": config.client_id,
            "redirect_uri": config.redirect_uri,
        },
        quote_via=quote,
    )
    sep = "&" if "?" in config.auth_uri else "?"
    return f"{config.auth_uri}{sep}{query}"


def _truncate(detail: str, limit: int = 2000) -> str:
    detail = (detail or "").strip()
    if len(detail) > limit:
        detail = detail[:limit] + "...(truncated)"
    return detail


class _ListenerServer(ThreadingHTTPServer):
    daemon_threads = True
    # The redirect port belongs to exactly one listener.
    allow_reuse_port = False


class CallbackListener:
    """One-shot HTTP listener for the OAuth redirect.

    Use as a context manager: entering binds and starts serving, leaving
    always shuts the server down. The first request on ``path`` settles the
    result exactly once; requests to other paths are held unanswered until
    the listener closes.
    """

    def __init__(self, host: str, port: int, path: str) -> None:
        self._address = (host, port)
        self._path = path
        self._result: Future = Future()
        self._lock = threading.Lock()
        self._claimed = False
        self._closed = threading.Event()
        self._server: Optional[_ListenerServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        if self._server is None:
            raise RuntimeError("Callback listener is not running")
        return self._server.server_address[1]

    def __enter__(self) -> CallbackListener:
        host, port = self._address
        try:
            server = _ListenerServer(self._address, self._create_handler_class())
        except OSError as e:
            raise ListenerBindFailed(f"Unable to listen on {host}:{port}: {e}") from e
        self._server = server
        self._thread = threading.Thread(
            target=server.serve_forever,
            kwargs={"poll_interval": 0.1},
            name="oauth2-callback",
            daemon=True,
        )
        self._thread.start()
        logger.debug("Callback listener started on {}:{}{}", host, self.port, self._path)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._server is None:
            return
        self._closed.set()
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join()
        self._server = None
        self._thread = None
        logger.debug("Callback listener closed")

    def wait(self, timeout: Optional[float] = None) -> str:
        """Block until the redirect arrives and return its authorization code."""
        try:
            return self._result.result(timeout=timeout)
        except FutureTimeoutError as e:
            raise AuthorizationTimeout(
                f"No authorization redirect received within {timeout:.0f} seconds"
            ) from e

    def _claim(self, params: dict[str, list[str]]) -> tuple[int, str, Optional[Callable[[], Any]]]:
        """Pick the answer for a redirect; the returned callable settles the result."""
        with self._lock:
            if self._claimed:
                return 400, "Authorization already processed.", None
            self._claimed = True

        code = (params.get("code") or [""])[0]
        if code:
            return 200, SUCCESS_PAGE, lambda: self._result.set_result(code)

        error = (params.get("error") or [""])[0]
        if error:
            denied = AuthorizationDenied(f"Authorization denied: {error}")
            return (
                400,
                f"Authorization failed: {error}. Return to the console/terminal.",
                lambda: self._result.set_exception(denied),
            )

        denied = AuthorizationDenied("Redirect carried neither a code nor an error")
        return (
            400,
            "Authorization failed: no code in redirect. Return to the console/terminal.",
            lambda: self._result.set_exception(denied),
        )

    def _create_handler_class(self) -> type:
        listener = self

        class CallbackHandler(BaseHTTPRequestHandler):
            def log_message(self, format: str, *args: Any) -> None:
                logger.debug("Callback listener: {}", format % args)

            def do_GET(self) -> None:
                parsed = urlsplit(self.path)
                if parsed.path != listener._path:
                    # No response; the connection is dropped when the listener closes.
                    listener._closed.wait()
                    self.close_connection = True
                    return

                status, body, settle = listener._claim(parse_qs(parsed.query))
                payload = body.encode("utf-8")
                try:
                    self.send_response(status)
                    self.send_header("Content-Type", "text/plain; charset=utf-8")
                    self.send_header("Content-Length", str(len(payload)))
                    self.end_headers()
                    self.wfile.write(payload)
                    self.wfile.flush()
                finally:
                    # Settled only once the browser has its answer, even if the write failed.
                    if settle is not None:
                        settle()

        return CallbackHandler


class AuthorizationFlow:
    """Runs one interactive authorization-code grant and returns the tokens.

    The flow never writes the credential file; persisting the result is the
    caller's job.

    Args:
        config: Registered OAuth client.
        session: requests session used for the code exchange.
        open_browser: Called with the authorization URL; ``webbrowser.open`` by default.
        clock: Millisecond wall clock used to pin ``expiry_date``.
        timeout_s: Seconds to wait for the browser redirect; ``None`` or 0 waits forever.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        session: Optional[requests.Session] = None,
        open_browser: Callable[[str], Any] = webbrowser.open,
        clock: Clock = now_ms,
        timeout_s: Optional[float] = DEFAULT_CALLBACK_TIMEOUT_S,
        exchange_timeout_s: float = DEFAULT_EXCHANGE_TIMEOUT_S,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._open_browser = open_browser
        self._clock = clock
        self._timeout_s = timeout_s or None
        self._exchange_timeout_s = exchange_timeout_s

    def authorization_url(self) -> str:
        return build_authorization_url(self._config)

    def run(self) -> Credential:
        logger.info("Authentication required to proceed")
        url = self.authorization_url()
        cfg = self._config

        with CallbackListener(cfg.redirect_host, cfg.redirect_port, cfg.redirect_path) as listener:
            logger.info("Open this URL in your browser if it does not open automatically:\n\n  {}\n", url)
            self._launch_browser(url)
            logger.info("Waiting for authorization redirect on {}", cfg.redirect_uri)
            code = listener.wait(self._timeout_s)

        logger.info("Exchanging authorization code for tokens")
        return self.exchange_code(code)

    def exchange_code(self, code: str) -> Credential:
        body = {
            "code": code,
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
            "redirect_uri": self._config.redirect_uri,
            "grant_type": "authorization_code",
        }
        try:
            r = self._session.post(self._config.token_uri, data=body, timeout=self._exchange_timeout_s)
        except requests.RequestException as e:
            raise CodeExchangeFailed(f"Token endpoint unreachable: {e}") from e

        if not r.ok:
            raise CodeExchangeFailed(
                f"Token endpoint rejected the authorization code: HTTP {r.status_code} | body={_truncate(r.text)}"
            )

        try:
            return Credential.from_token_response(r.json(), now_ms=self._clock())
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise CodeExchangeFailed(f"Unexpected token endpoint response: {e!r}") from e

    def _launch_browser(self, url: str) -> None:
        try:
            opened = self._open_browser(url)
        except (webbrowser.Error, OSError) as e:
            logger.warning("Unable to open a browser: {}", e)
            return
        if opened is False:
            logger.warning("No browser available; open the URL above manually")
        else:
            logger.info("Opened the authorization page in the default browser")
