"""Tests for the ticketing HTTP blueprint."""

import pytest

from app import create_app
from tests.conftest import ATTENDEE, ORGANIZER
from utils.async_runner import AsyncRunner


@pytest.fixture
def runner():
    runner = AsyncRunner()
    yield runner
    runner.stop()


@pytest.fixture
def client(coordinator, runner):
    app = create_app(coordinator=coordinator, runner=runner)
    app.config["TESTING"] = True
    return app.test_client()


def test_state_starts_disconnected(client) -> None:
    response = client.get("/tickets/state")

    assert response.status_code == 200
    assert response.get_json()["state"]["connection_state"] == "disconnected"


def test_connect_without_wallet_is_service_unavailable(client, wallet, contract) -> None:
    wallet.available = False

    response = client.post("/tickets/session")

    assert response.status_code == 503
    body = response.get_json()
    assert body["success"] is False
    assert body["error"] == "No wallet detected"
    assert contract.calls == []


def test_connect_with_bad_contract_address_returns_json_error(client, coordinator) -> None:
    def broken_factory(contract_address, signer):
        raise ValueError("Unknown format 'nope'")

    coordinator.contract_factory = broken_factory

    response = client.post("/tickets/session")

    assert response.status_code == 500
    body = response.get_json()
    assert body["success"] is False
    assert body["error"].startswith("Could not set up the wallet session")
    assert body["state"]["connection_state"] == "disconnected"


def test_connect_returns_account_and_role(client) -> None:
    response = client.post("/tickets/session")

    body = response.get_json()
    assert response.status_code == 200
    assert body["account"] == ORGANIZER
    assert body["is_organizer"] is True
    assert [token["token_id"] for token in body["state"]["tokens"]] == ["1", "2"]


def test_mint_validates_input(client) -> None:
    client.post("/tickets/session")

    response = client.post("/tickets/mint", json={"token_id": "42"})

    assert response.status_code == 400


def test_mint_accepts_token_id_zero(client, contract) -> None:
    client.post("/tickets/session")

    response = client.post("/tickets/mint", json={"token_id": 0, "metadata_hash": "QmZero"})

    assert response.status_code == 200
    assert response.get_json()["ticket_link"] == "https://tickets.example/token/0"
    assert ("mintNFT", ORGANIZER, "0", "ipfs://QmZero") in contract.calls


def test_mint_rejects_blank_token_id(client, contract) -> None:
    client.post("/tickets/session")

    response = client.post("/tickets/mint", json={"token_id": "  ", "metadata_hash": "Qm123"})

    assert response.status_code == 400
    assert "mintNFT" not in contract.call_names()


def test_mint_without_session_conflicts(client) -> None:
    response = client.post("/tickets/mint", json={"token_id": "42", "metadata_hash": "Qm123"})

    assert response.status_code == 409


def test_mint_confirms_and_lists_token(client, contract) -> None:
    client.post("/tickets/session")

    response = client.post("/tickets/mint", json={"token_id": "42", "metadata_hash": "Qm123"})

    body = response.get_json()
    assert response.status_code == 200
    assert body["transaction_hash"] == "0x" + "11" * 32
    assert body["ticket_link"] == "https://tickets.example/token/42"
    assert "42" in [token["token_id"] for token in body["state"]["tokens"]]
    assert ("mintNFT", ORGANIZER, "42", "ipfs://Qm123") in contract.calls


def test_failed_mint_is_bad_gateway(client, contract) -> None:
    client.post("/tickets/session")
    contract.revert_reason = "ERC721: token already minted"

    response = client.post("/tickets/mint", json={"token_id": "1", "metadata_hash": "Qm123"})

    assert response.status_code == 502
    assert "token already minted" in response.get_json()["error"]


def test_non_organizer_cannot_update_metadata(client, wallet, contract) -> None:
    wallet.address = ATTENDEE
    client.post("/tickets/session")

    response = client.post("/tickets/tokens/3/metadata", json={"metadata_hash": "QmNew"})

    assert response.status_code == 403
    assert "updateMetadata" not in contract.call_names()


def test_fetch_and_update_metadata(client) -> None:
    client.post("/tickets/session")

    fetched = client.get("/tickets/tokens/1/metadata").get_json()
    updated = client.post("/tickets/tokens/1/metadata", json={"metadata_hash": "QmNew"})
    refetched = client.get("/tickets/tokens/1/metadata").get_json()

    assert fetched["metadata_uri"] == "ipfs://QmOne"
    assert updated.status_code == 200
    assert refetched["metadata_uri"] == "ipfs://QmNew"
    assert refetched["state"]["selected_token_id"] == "1"


def test_refresh_failure_keeps_tokens(client, contract) -> None:
    client.post("/tickets/session")
    contract.fetch_error = ConnectionError("rpc down")

    response = client.post("/tickets/tokens/refresh")

    assert response.status_code == 502
    assert [token["token_id"] for token in response.get_json()["state"]["tokens"]] == ["1", "2"]


def test_ticket_link(client) -> None:
    response = client.get("/tickets/tokens/42/link")

    assert response.get_json()["ticket_link"] == "https://tickets.example/token/42"


def test_disconnect_clears_state(client) -> None:
    client.post("/tickets/session")

    response = client.delete("/tickets/session")

    state = response.get_json()["state"]
    assert state["connection_state"] == "disconnected"
    assert state["tokens"] == []
