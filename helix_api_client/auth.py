"""
OAuth transports for the Helix client.

Two ways of authenticating are supported:

* :class:`ClientCredentialsAuth` obtains an app access token with the
  OAuth2 client credentials grant the first time a request is sent,
  caches it for the duration given by ``expires_in`` and requests a
  new one shortly before it expires.
* :func:`token_session` wraps a pre-issued user token in a
  :class:`requests_oauthlib.OAuth2Session` which refreshes it against
  the token endpoint when it expires.

:class:`KeepAlive` is the background tick bound to a token session's
lifetime.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import requests
from requests.auth import AuthBase
from requests_oauthlib import OAuth2Session

from .exceptions import HelixAuthError

logger = logging.getLogger(__name__)

TOKEN_URL = "https://id.twitch.tv/oauth2/token"
KEEP_ALIVE_INTERVAL = 30 * 60


class ClientCredentialsAuth(AuthBase):
    """Attach an app access token obtained with the client credentials grant.

    Parameters
    ----------
    client_id : str
        The application's client identifier.
    client_secret : str
        The application's client secret.
    token_url : str, optional
        Token endpoint.  Defaults to the Twitch OAuth2 token endpoint.

    Notes
    -----
    The token is cached and reused until it is within 60 seconds of
    expiring.  Token requests go through their own plain
    :func:`requests.post` call, never through the session being
    authenticated.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token_url: str = TOKEN_URL,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url

        self._access_token: Optional[str] = None
        self._token_expiry: float = 0.0  # epoch seconds when token expires
        self._lock = threading.Lock()

    def _refresh_access_token(self) -> None:
        """Retrieve a new access token from the token endpoint.

        On success the ``access_token`` is stored together with its
        absolute expiry time.  A non-success status raises
        :class:`HelixAuthError`.
        """
        payload = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        logger.debug("Requesting app access token from %s", self.token_url)
        try:
            response = requests.post(self.token_url, data=payload)
        except requests.RequestException as exc:
            raise HelixAuthError(f"Failed to connect to auth server: {exc}") from exc

        if not response.ok:
            raise HelixAuthError(
                f"Authentication failed with status {response.status_code}: {response.text}"
            )

        token_info: Dict[str, Any] = response.json()
        access_token = token_info.get("access_token")
        if not access_token:
            raise HelixAuthError(
                "Authentication response did not contain an access_token"
            )
        expires_in = token_info.get("expires_in")
        if not isinstance(expires_in, (int, float)):
            expires_in = 3600
        self._access_token = access_token
        self._token_expiry = time.time() + float(expires_in)

    def get_access_token(self) -> str:
        """Return a valid access token, refreshing it if expired."""
        with self._lock:
            if not self._access_token or time.time() >= (self._token_expiry - 60):
                self._refresh_access_token()
            assert self._access_token is not None
            return self._access_token

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        request.headers["Authorization"] = f"Bearer {self.get_access_token()}"
        return request


def token_session(
    client_id: str,
    client_secret: str,
    token: Dict[str, Any],
    auth_url: str,
) -> OAuth2Session:
    """Build a session carrying ``token`` that refreshes it when expired."""

    def _token_updated(new_token: Dict[str, Any]) -> None:
        logger.debug("OAuth token refreshed, expires in %s", new_token.get("expires_in"))

    return OAuth2Session(
        client_id,
        token=token,
        auto_refresh_url=urljoin(auth_url, "token"),
        auto_refresh_kwargs={"client_id": client_id, "client_secret": client_secret},
        token_updater=_token_updated,
    )


class KeepAlive:
    """Periodic background tick kept alive until :meth:`stop` is called.

    The tick performs no I/O; it marks the lifetime of a token session.
    """

    def __init__(self, interval: float = KEEP_ALIVE_INTERVAL) -> None:
        self.interval = interval
        self.ticks = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run, name="helix-keep-alive", daemon=True
        )
        self._thread.start()
        logger.debug("Keep-alive started (interval=%ss)", self.interval)

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.ticks += 1
            logger.debug("Keep-alive tick %d", self.ticks)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
            logger.debug("Keep-alive stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
