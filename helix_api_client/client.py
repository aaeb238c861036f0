"""
Client implementation for the Twitch Helix REST API.

This module defines the :class:`HelixClient` class which builds
requests against Helix endpoints, sends them through an OAuth capable
:class:`requests.Session`, classifies the outcome and decodes JSON
bodies into typed records.  Rate limit headers of every successful
response are exposed on the returned :class:`Response`.

Usage
-----

.. code-block:: python

    from helix_api_client import Context, Credentials, HelixClient, UsersOptions

    client = HelixClient(
        Credentials(client_id="abc123", client_secret="shhsecret"),
    )

    ctx = Context.background().with_timeout(10)
    users, resp = client.users.get_users(ctx, UsersOptions(logins=["twitchdev"]))
    for user in users:
        print(user.display_name, resp.rate.remaining)

Without an OAuth token or a custom session the client obtains an app
access token with the client credentials grant before the first
request and refreshes it when it expires.
"""

from __future__ import annotations

import json
import logging
import os
import re
import threading
import time
import weakref
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional
from urllib.parse import urljoin

import requests

from .auth import ClientCredentialsAuth, KeepAlive, TOKEN_URL, token_session
from .context import Context
from .exceptions import (
    ContextRequiredError,
    EmptyCredentialsError,
    HelixAPIError,
    InvalidMethodError,
    RequestBodyError,
)
from .models import Model
from .query import split_path
from .streams import StreamsService
from .users import UsersService

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.twitch.tv/helix/"
DEFAULT_AUTH_URL = "https://id.twitch.tv/oauth2/"
APPLICATION_JSON = "application/json"
USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/65.0.3325.162 Safari/537.36"
)

HEADER_RATE_LIMIT = "Ratelimit-Limit"
HEADER_RATE_RESET = "Ratelimit-Reset"
HEADER_RATE_REMAINING = "Ratelimit-Remaining"

NOT_SUCCESS_RESPONSE = "response is not success"

_METHOD_TOKEN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")


@dataclass(frozen=True)
class Credentials:
    """Application credentials, optionally with a pre-issued OAuth token.

    ``oauth_token`` is a token dict as understood by
    :mod:`requests_oauthlib` (``access_token``, ``refresh_token``,
    ``token_type``, ``expires_in`` ...).
    """

    client_id: str
    client_secret: str
    oauth_token: Optional[Dict[str, Any]] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Credentials":
        """Read ``TWITCH_CLIENT_ID``, ``TWITCH_CLIENT_SECRET`` and the
        optional ``TWITCH_OAUTH_TOKEN`` access token."""
        env = os.environ if environ is None else environ
        access_token = env.get("TWITCH_OAUTH_TOKEN")
        token = {"access_token": access_token, "token_type": "Bearer"} if access_token else None
        return cls(
            client_id=env.get("TWITCH_CLIENT_ID", ""),
            client_secret=env.get("TWITCH_CLIENT_SECRET", ""),
            oauth_token=token,
        )


@dataclass(frozen=True)
class Rate:
    """Rate limit state reported by the server for one response."""

    limit: int = 0
    remaining: int = 0
    reset: Optional[datetime] = None


def _header_int(headers: Mapping[str, str], name: str) -> Optional[int]:
    value = headers.get(name)
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def parse_rate(headers: Mapping[str, str]) -> Rate:
    """Extract :class:`Rate` from response headers; missing values are zero."""
    reset_epoch = _header_int(headers, HEADER_RATE_RESET)
    reset = None
    if reset_epoch is not None:
        try:
            reset = datetime.fromtimestamp(reset_epoch, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            reset = None
    return Rate(
        limit=_header_int(headers, HEADER_RATE_LIMIT) or 0,
        remaining=_header_int(headers, HEADER_RATE_REMAINING) or 0,
        reset=reset,
    )


class Response:
    """A successful API response together with its rate limit info.

    Attribute access falls through to the wrapped
    :class:`requests.Response`, so ``status_code``, ``headers`` and
    friends are available directly.
    """

    def __init__(self, response: requests.Response) -> None:
        self.response = response
        self.rate = parse_rate(response.headers)

    def __getattr__(self, name: str) -> Any:
        return getattr(self.response, name)

    def is_success(self) -> bool:
        return 200 <= self.response.status_code <= 299

    def __repr__(self) -> str:
        return f"<Response [{self.response.status_code}] {self.rate}>"


def _json_default(value: Any) -> Any:
    if isinstance(value, Model):
        return value.to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _decode_into(target: Any, payload: Any) -> None:
    if isinstance(target, (Model, dict)):
        target.update(payload)
    elif isinstance(target, list):
        target.extend(payload)
    else:
        raise TypeError(f"cannot decode JSON into {type(target).__name__}")


class _Dispatch:
    """One transport call running on a daemon thread.

    ``wake`` is set once the call has finished.  A response that arrives
    after the call was abandoned is closed and dropped.
    """

    def __init__(self, send: Callable[[], requests.Response], wake: threading.Event) -> None:
        self._send = send
        self._wake = wake
        self._lock = threading.Lock()
        self._abandoned = False
        self.finished = False
        self.response: Optional[requests.Response] = None
        self.error: Optional[BaseException] = None
        self._thread = threading.Thread(target=self._run, name="helix-request", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def _run(self) -> None:
        response, error = None, None
        try:
            response = self._send()
        except Exception as exc:
            # re-raised on the calling thread
            error = exc
        with self._lock:
            self.response, self.error = response, error
            self.finished = True
            abandoned = self._abandoned
        if abandoned:
            logger.debug("dropping response of an abandoned request")
            if response is not None:
                response.close()
        self._wake.set()

    def abandon(self) -> Optional[BaseException]:
        """Give up on the call and return its transport error, if any."""
        with self._lock:
            self._abandoned = True
            response, error = self.response, self.error
        if response is not None:
            response.close()
        return error


class HelixClient:
    """A client for the Twitch Helix REST API.

    Parameters
    ----------
    credentials : Credentials
        Application client id and secret, optionally with a pre-issued
        OAuth token.
    session : requests.Session, optional
        Transport to send requests through.  Ignored when the
        credentials carry an OAuth token.  When neither is given a
        session authenticating with the client credentials grant is
        created.
    base_url : str, optional
        Override the API base URL.
    auth_url : str, optional
        Override the OAuth base URL used to refresh a pre-issued token.
    user_agent : str, optional
        Override the ``User-Agent`` header.
    timeout : float, optional
        Default timeout in seconds for every request.  A context with a
        shorter deadline takes precedence.

    Notes
    -----
    The client holds no per-call state and can be shared between
    threads as far as the underlying session allows.  Call
    :meth:`close` (or use the client as a context manager) to stop the
    keep-alive tick of a token session and release connections; a
    client collected without it stops the tick as well.
    """

    def __init__(
        self,
        credentials: Credentials,
        session: Optional[requests.Session] = None,
        *,
        base_url: Optional[str] = None,
        auth_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        if not credentials.client_id:
            raise EmptyCredentialsError("client_id")
        if not credentials.client_secret:
            raise EmptyCredentialsError("client_secret")

        self._credentials = credentials
        self.base_url = base_url or DEFAULT_BASE_URL
        self.auth_url = auth_url or DEFAULT_AUTH_URL
        self.user_agent = user_agent or USER_AGENT
        self.timeout = timeout
        self._keep_alive: Optional[KeepAlive] = None

        if credentials.oauth_token is not None:
            session = token_session(
                credentials.client_id,
                credentials.client_secret,
                credentials.oauth_token,
                self.auth_url,
            )
            self._keep_alive = KeepAlive()
            self._keep_alive.start()
            # stops the tick when the client is collected without close()
            self._stop_keep_alive = weakref.finalize(self, self._keep_alive.stop)
        elif session is None:
            session = requests.Session()
            session.auth = ClientCredentialsAuth(
                credentials.client_id,
                credentials.client_secret,
                token_url=TOKEN_URL,
            )
        self.session = session

        self.users = UsersService(self)
        self.streams = StreamsService(self)

    @property
    def client_id(self) -> str:
        return self._credentials.client_id

    # ------------------------------------------------------------------
    # Request construction
    # ------------------------------------------------------------------
    def new_request(self, method: str, path: str, body: Any = None) -> requests.Request:
        """Build a request for ``path`` relative to the base URL.

        A non-``None`` body is serialised to JSON and sent with an
        ``application/json`` content type.  ``Client-Id`` and
        ``User-Agent`` are always set.

        Raises
        ------
        InvalidMethodError
            If ``method`` is not a valid HTTP token.
        URLParseError
            If ``path`` cannot be parsed.
        RequestBodyError
            If ``body`` cannot be serialised to JSON.
        """
        if not method or not _METHOD_TOKEN.fullmatch(method):
            raise InvalidMethodError(f"invalid method {method!r}")

        split_path(path)
        url = urljoin(self.base_url, path)

        headers = {
            "Client-Id": self.client_id,
            "User-Agent": self.user_agent,
        }
        data = None
        if body is not None:
            try:
                encoded = json.dumps(
                    body,
                    ensure_ascii=False,
                    separators=(",", ":"),
                    default=_json_default,
                )
            except (TypeError, ValueError) as exc:
                raise RequestBodyError(f"cannot encode request body: {exc}") from exc
            data = (encoded + "\n").encode("utf-8")
            headers["Content-Type"] = APPLICATION_JSON

        return requests.Request(method=method.upper(), url=url, headers=headers, data=data)

    # ------------------------------------------------------------------
    # Request execution
    # ------------------------------------------------------------------
    def _request_timeout(self, ctx: Context) -> Optional[float]:
        remaining = ctx.remaining()
        if remaining is None:
            return self.timeout
        if self.timeout is None:
            return remaining
        return min(remaining, self.timeout)

    def do(self, ctx: Context, request: requests.Request, target: Any = None) -> Response:
        """Send ``request`` and decode a JSON body into ``target``.

        Parameters
        ----------
        ctx : Context
            Execution context; required.
        request : requests.Request
            A request built with :meth:`new_request`.
        target : Model, dict or list, optional
            Object updated in place with the decoded body.  An empty
            body leaves it untouched.

        Returns
        -------
        Response
            The wrapped response with its :class:`Rate`.

        Raises
        ------
        ContextRequiredError
            If ``ctx`` is ``None``.
        ContextCancelledError, DeadlineExceededError
            If the context is done before or while the request is sent.
        HelixAPIError
            If the status code is outside 200-299.
        requests.RequestException
            Transport failures, unchanged.
        json.JSONDecodeError
            If a non-empty success body is not valid JSON.
        """
        if ctx is None:
            raise ContextRequiredError()
        ctx_err = ctx.err()
        if ctx_err is not None:
            raise ctx_err

        started = time.monotonic()
        wake = threading.Event()
        dispatch = _Dispatch(
            lambda: self.session.request(
                method=request.method,
                url=request.url,
                headers=request.headers,
                data=request.data or None,
                timeout=self._request_timeout(ctx),
            ),
            wake,
        )
        unregister = ctx.on_cancel(wake.set)
        try:
            dispatch.start()
            while not dispatch.finished and ctx.err() is None:
                wake.wait(ctx.remaining())
        finally:
            unregister()

        ctx_err = ctx.err()
        if ctx_err is not None:
            raise ctx_err from dispatch.abandon()
        if dispatch.error is not None:
            raise dispatch.error
        raw = dispatch.response

        try:
            logger.debug(
                "%s %s -> %d (%.3fs)",
                request.method,
                request.url,
                raw.status_code,
                time.monotonic() - started,
            )
            response = Response(raw)
            if not response.is_success():
                raise HelixAPIError(raw, NOT_SUCCESS_RESPONSE, rate=response.rate)

            content = raw.content
            if target is not None and content and content.strip():
                _decode_into(target, json.loads(content))
        finally:
            raw.close()

        return response

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def close(self) -> None:
        """Stop the keep-alive tick and close the session."""
        if self._keep_alive is not None:
            self._stop_keep_alive()
        self.session.close()

    def __enter__(self) -> "HelixClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
