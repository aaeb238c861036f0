"""Tests for transport selection and OAuth handling."""
import gc
import time

import pytest
import responses
from requests_oauthlib import OAuth2Session

from helix_api_client import Credentials, HelixAuthError, HelixClient, UsersOptions
from helix_api_client.auth import TOKEN_URL, ClientCredentialsAuth, KeepAlive

BASE_URL = "https://api.twitch.tv/helix/"
USERS_BODY = {"data": [{"id": "12"}]}


@responses.activate
def test_client_credentials_token_is_fetched_once(credentials, ctx):
    """Without token or session the app token is fetched lazily and cached."""
    responses.add(
        responses.POST,
        TOKEN_URL,
        json={"access_token": "app-token", "expires_in": 5000000, "token_type": "bearer"},
    )
    responses.add(responses.GET, BASE_URL + "users", json=USERS_BODY)

    client = HelixClient(credentials)
    assert isinstance(client.session.auth, ClientCredentialsAuth)
    assert len(responses.calls) == 0

    client.users.get_users(ctx, UsersOptions(ids=["12"]))
    client.users.get_users(ctx, UsersOptions(ids=["12"]))

    token_calls = [c for c in responses.calls if c.request.url == TOKEN_URL]
    api_calls = [c for c in responses.calls if c.request.url.startswith(BASE_URL)]
    assert len(token_calls) == 1
    assert "grant_type=client_credentials" in token_calls[0].request.body
    assert len(api_calls) == 2
    assert api_calls[0].request.headers["Authorization"] == "Bearer app-token"
    assert api_calls[0].request.headers["Client-Id"] == "ClientId"
    client.close()


@responses.activate
def test_client_credentials_token_is_refreshed_when_expiring():
    responses.add(
        responses.POST,
        TOKEN_URL,
        json={"access_token": "short", "expires_in": 30},
    )
    auth = ClientCredentialsAuth("id", "secret")

    assert auth.get_access_token() == "short"
    assert auth.get_access_token() == "short"
    # expires within the 60 second margin, so every call refreshes
    assert len(responses.calls) == 2


@responses.activate
def test_client_credentials_failure_raises():
    responses.add(responses.POST, TOKEN_URL, json={"message": "invalid client"}, status=400)

    with pytest.raises(HelixAuthError):
        ClientCredentialsAuth("id", "bad-secret").get_access_token()


@responses.activate
def test_client_credentials_missing_access_token_raises():
    responses.add(responses.POST, TOKEN_URL, json={"expires_in": 10})

    with pytest.raises(HelixAuthError):
        ClientCredentialsAuth("id", "secret").get_access_token()


@responses.activate
def test_pre_issued_token_is_sent_as_bearer(ctx):
    creds = Credentials(
        client_id="ClientId",
        client_secret="ClientSecret",
        oauth_token={"access_token": "user-token", "token_type": "Bearer", "expires_in": 3600},
    )
    responses.add(responses.GET, BASE_URL + "users", json=USERS_BODY)

    with HelixClient(creds) as client:
        assert isinstance(client.session, OAuth2Session)
        users, _ = client.users.get_users(ctx, UsersOptions(ids=["12"]))

    assert users[0].id == "12"
    assert responses.calls[0].request.headers["Authorization"] == "Bearer user-token"


@responses.activate
def test_pre_issued_token_is_refreshed_when_expired(ctx):
    creds = Credentials(
        client_id="ClientId",
        client_secret="ClientSecret",
        oauth_token={
            "access_token": "old",
            "refresh_token": "refresh",
            "token_type": "Bearer",
            "expires_at": time.time() - 10,
        },
    )
    responses.add(
        responses.POST,
        TOKEN_URL,
        json={
            "access_token": "new",
            "refresh_token": "refresh-2",
            "token_type": "bearer",
            "expires_in": 3600,
        },
    )
    responses.add(responses.GET, BASE_URL + "users", json=USERS_BODY)

    with HelixClient(creds) as client:
        client.users.get_users(ctx, UsersOptions(ids=["12"]))

    assert responses.calls[0].request.url == TOKEN_URL
    assert responses.calls[1].request.headers["Authorization"] == "Bearer new"


def test_pre_issued_token_starts_keep_alive_until_close():
    creds = Credentials(
        client_id="ClientId",
        client_secret="ClientSecret",
        oauth_token={"access_token": "user-token", "token_type": "Bearer"},
    )
    client = HelixClient(creds)
    keep_alive = client._keep_alive
    assert keep_alive is not None
    assert keep_alive.running

    client.close()
    assert not keep_alive.running


def test_keep_alive_stops_when_client_is_collected():
    creds = Credentials(
        client_id="ClientId",
        client_secret="ClientSecret",
        oauth_token={"access_token": "user-token", "token_type": "Bearer"},
    )
    client = HelixClient(creds)
    keep_alive = client._keep_alive
    assert keep_alive.running

    del client
    gc.collect()

    assert not keep_alive.running


def test_no_keep_alive_without_token(client):
    assert client._keep_alive is None


def test_keep_alive_ticks_until_stopped():
    keep_alive = KeepAlive(interval=0.01)
    keep_alive.start()
    deadline = time.time() + 2
    while keep_alive.ticks < 2 and time.time() < deadline:
        time.sleep(0.01)
    keep_alive.stop(timeout=1)

    assert keep_alive.ticks >= 2
    assert not keep_alive.running
