from __future__ import annotations

import time
from collections.abc import Iterator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from whisper_relay.core.settings import Settings, settings
from whisper_relay.main import app as fastapi_app
from whisper_relay.services.container import RelayServices, build_relay_services


class FakeConnection:
    """In-memory stand-in for a live relay channel."""

    def __init__(self, *, open_: bool = True) -> None:
        self.sent: list[dict[str, Any]] = []
        self.open = open_

    @property
    def is_open(self) -> bool:
        return self.open

    async def send_json(self, payload: dict[str, Any]) -> None:
        self.sent.append(payload)


@pytest.fixture()
def services() -> RelayServices:
    """Return a fresh, empty set of relay services."""
    return build_relay_services()


@pytest.fixture()
def make_connection() -> Any:
    """Return a factory for fake relay connections."""
    return FakeConnection


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide the Settings instance the running app was configured with."""
    return settings


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def relay_state(client: TestClient) -> RelayServices:
    """Expose the services the running app built at startup."""
    return client.app.state.relay


def wait_until_online(client: TestClient, user_id: str, *, attempts: int = 200) -> None:
    """Poll the presence endpoint until ``user_id`` holds a live connection."""
    for _ in range(attempts):
        response = client.get(f"/system/presence/{user_id}")
        if response.json()["online"]:
            return
        time.sleep(0.01)
    raise AssertionError(f"{user_id} never came online")


def bundle_payload(user_id: str, keys: list[tuple[Any, str]]) -> dict[str, Any]:
    """Build an upload body with the given (id, publicKey) one-time keys."""
    return {
        "userId": user_id,
        "identityKey": f"ik-{user_id}",
        "signedPreKey": f"spk-{user_id}",
        "oneTimePreKeys": [{"id": key_id, "publicKey": pub} for key_id, pub in keys],
    }
