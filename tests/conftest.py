"""
Shared fixtures for the gateway tests.

No test talks to a real Soroban node: the simulator is given a fake server
factory and the relay an ``httpx.MockTransport``.
"""

import json
from pathlib import Path
from types import SimpleNamespace

import anyio
import pytest
from stellar_sdk import Account, Keypair

from gateway.config import Settings
from gateway.models import ServiceIdentity
from gateway.simulator import TransactionSimulator

FIXTURES = Path(__file__).parent / "fixtures"

# Contract id used by the original front-end deployment.
CONTRACT_ID = "CAW645ORVZG64DEOEC3XZ6DYJU56Y35ERVXX4QO6DNDTWDZS6ADONTPR"


def load_simulate_fixture(name: str) -> SimpleNamespace:
    """Turn a recorded ``simulateTransaction`` JSON-RPC response into the shape the SDK returns."""
    with (FIXTURES / name).open("r", encoding="utf-8") as handle:
        result = json.load(handle)["result"]
    results = result.get("results")
    return SimpleNamespace(
        error=result.get("error"),
        results=[SimpleNamespace(xdr=item["xdr"]) for item in results] if results is not None else None,
        latest_ledger=result.get("latestLedger"),
    )


def simulation_response(error=None, xdr=None) -> SimpleNamespace:
    return SimpleNamespace(error=error, results=[SimpleNamespace(xdr=xdr)] if xdr else [])


def invoked_function(envelope) -> str:
    invoke = envelope.transaction.operations[0].host_function.invoke_contract
    return invoke.function_name.sc_symbol.decode()


def invoked_args(envelope) -> list:
    return list(envelope.transaction.operations[0].host_function.invoke_contract.args)


class FakeSorobanServer:
    """Stands in for ``SorobanServerAsync``; also usable as its own factory."""

    def __init__(self, response=None, load_error=None, simulate_error=None, responder=None):
        self.response = response if response is not None else simulation_response()
        self.load_error = load_error
        self.simulate_error = simulate_error
        self.responder = responder
        self.urls = []
        self.loaded_accounts = []
        self.envelopes = []

    def __call__(self, url):
        self.urls.append(url)
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def load_account(self, account_id):
        self.loaded_accounts.append(account_id)
        if self.load_error is not None:
            raise self.load_error
        return Account(account_id, 4815162342)

    async def simulate_transaction(self, envelope):
        self.envelopes.append(envelope)
        # yield so concurrent callers interleave
        await anyio.sleep(0)
        if self.simulate_error is not None:
            raise self.simulate_error
        if self.responder is not None:
            return self.responder(envelope)
        return self.response

    @property
    def touched(self) -> bool:
        return bool(self.urls or self.loaded_accounts or self.envelopes)


@pytest.fixture()
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def service_keypair():
    return Keypair.random()


@pytest.fixture()
def settings(service_keypair):
    return Settings(service_secret=service_keypair.secret, rpc_url="https://rpc.test.invalid", environment="development")


@pytest.fixture()
def fake_server():
    return FakeSorobanServer(response=load_simulate_fixture("simulate_get_landmark.json"))


@pytest.fixture()
def simulator(settings, fake_server):
    return TransactionSimulator(settings, ServiceIdentity.from_settings(settings), server_factory=fake_server)
