"""Shared test fixtures and in-memory fakes for the wallet and the EventNFT contract."""

import asyncio
from dataclasses import dataclass, field

import pytest

from models.view_model import TicketingViewModel
from services.session_coordinator import SessionCoordinator
from utils.errors import ConnectionRejectedError, TransactionFailedError

ORGANIZER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
ATTENDEE = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
CONTRACT_ADDRESS = "0x52aaeeb1ac34415b434ba7101a5ce34fdd1045ea"


@dataclass
class FakeWalletProvider:
    """Wallet that approves or rejects without any UI."""

    address: str = ORGANIZER
    available: bool = True
    reject: bool = False
    w3: object = None
    connect_calls: int = 0

    async def is_available(self) -> bool:
        return self.available

    async def connect(self):
        self.connect_calls += 1
        if self.reject:
            raise ConnectionRejectedError("User rejected the connection request")
        return self.address, f"signer:{self.address}"


@dataclass
class FakePendingTransaction:
    """Pending transaction that applies its effect to the fake chain on confirmation."""

    contract: "FakeContractClient"
    on_confirm: object = None
    revert_reason: str | None = None
    gate: asyncio.Event | None = None
    tx_hash: bytes = b"\x11" * 32

    async def await_confirmation(self):
        self.contract.calls.append(("await_confirmation",))
        if self.contract.before_confirm is not None:
            self.contract.before_confirm()
        if self.gate is not None:
            await self.gate.wait()
        if self.revert_reason:
            raise TransactionFailedError("Transaction reverted", reason=self.revert_reason)
        if self.on_confirm is not None:
            self.on_confirm()
        return {"status": 1, "transactionHash": self.tx_hash, "blockNumber": 7}


@dataclass
class FakeContractClient:
    """In-memory EventNFT: roles, owned token ids and token URIs."""

    organizers: set[str] = field(default_factory=lambda: {ORGANIZER})
    owned: dict[str, list[str]] = field(default_factory=dict)
    uris: dict[str, str] = field(default_factory=dict)
    calls: list[tuple] = field(default_factory=list)
    role_error: Exception | None = None
    fetch_error: Exception | None = None
    uri_error: Exception | None = None
    submit_error: Exception | None = None
    revert_reason: str | None = None
    gate: asyncio.Event | None = None
    before_confirm: object = None
    read_gates: dict[str, asyncio.Event] = field(default_factory=dict)

    async def has_role(self, role_hash, address):
        self.calls.append(("hasRole", role_hash, address))
        if self.role_error is not None:
            raise self.role_error
        return address in self.organizers

    async def get_token_uris_for_owner(self, address):
        self.calls.append(("getTokenURIsForOwner", address))
        await self._hold("getTokenURIsForOwner")
        if self.fetch_error is not None:
            raise self.fetch_error
        return list(self.owned.get(address, []))

    async def token_uri(self, token_id):
        self.calls.append(("tokenURI", token_id))
        await self._hold("tokenURI")
        if self.uri_error is not None:
            raise self.uri_error
        return self.uris[token_id]

    async def mint_nft(self, to_address, token_id, uri):
        self.calls.append(("mintNFT", to_address, token_id, uri))
        if self.submit_error is not None:
            raise self.submit_error

        def apply():
            self.owned.setdefault(to_address, []).append(token_id)
            self.uris[token_id] = uri

        return FakePendingTransaction(self, apply, self.revert_reason, self.gate)

    async def update_metadata(self, token_id, uri):
        self.calls.append(("updateMetadata", token_id, uri))
        if self.submit_error is not None:
            raise self.submit_error

        def apply():
            self.uris[token_id] = uri

        return FakePendingTransaction(self, apply, self.revert_reason, self.gate)

    async def _hold(self, name):
        # Each read gate holds only the next call of that name
        gate = self.read_gates.pop(name, None)
        if gate is not None:
            await gate.wait()

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


@dataclass
class RecordingContractFactory:
    """Hands out the fake contract and records what it was bound to."""

    contract: FakeContractClient
    bindings: list[tuple[str, object]] = field(default_factory=list)

    def __call__(self, contract_address, signer):
        self.bindings.append((contract_address, signer))
        return self.contract


@pytest.fixture
def wallet() -> FakeWalletProvider:
    return FakeWalletProvider()


@pytest.fixture
def contract() -> FakeContractClient:
    return FakeContractClient(owned={ORGANIZER: ["1", "2"], ATTENDEE: ["3"]}, uris={"1": "ipfs://QmOne"})


@pytest.fixture
def factory(contract) -> RecordingContractFactory:
    return RecordingContractFactory(contract)


@pytest.fixture
def view_model() -> TicketingViewModel:
    return TicketingViewModel(link_base="https://tickets.example/token/")


@pytest.fixture
def coordinator(wallet, view_model, factory) -> SessionCoordinator:
    return SessionCoordinator(
        wallet,
        view_model=view_model,
        contract_address=CONTRACT_ADDRESS,
        contract_factory=factory,
    )
