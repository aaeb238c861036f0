"""Pytest configuration."""
from typing import Generator

import pytest
import requests

from helix_api_client import Context, Credentials, HelixClient


@pytest.fixture
def credentials() -> Credentials:
    """Application credentials without an OAuth token."""
    return Credentials(client_id="ClientId", client_secret="ClientSecret")


@pytest.fixture
def client(credentials) -> Generator[HelixClient, None, None]:
    """Client sending through a plain session, without automatic auth."""
    client = HelixClient(credentials, requests.Session())
    yield client
    client.close()


@pytest.fixture
def ctx() -> Context:
    return Context.background()
