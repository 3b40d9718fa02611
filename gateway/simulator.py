"""Unsigned transaction construction and simulation against a Soroban RPC node."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Sequence

from stellar_sdk import SorobanServerAsync, TransactionBuilder, TransactionEnvelope, xdr as stellar_xdr
from stellar_sdk.exceptions import AccountNotFoundException, ConnectionError as StellarConnectionError

from gateway.config import BASE_FEE, TX_TIMEOUT_SECONDS, Settings
from gateway.errors import ConfigurationError, NetworkError
from gateway.models import ServiceIdentity, SimulationOutcome

logger = logging.getLogger(__name__)

ServerFactory = Callable[[str], SorobanServerAsync]


class TransactionSimulator:
    """Runs read-only contract invocations through ``simulateTransaction``.

    The node executes the call against current ledger state without
    committing anything, so the transaction is never signed and the source
    account's sequence number is never advanced. Each call opens its own
    RPC connection; the simulator holds no per-request state.
    """

    def __init__(
        self,
        settings: Settings,
        identity: Optional[ServiceIdentity],
        server_factory: ServerFactory = SorobanServerAsync,
    ):
        self.settings = settings
        self.identity = identity
        self._server_factory = server_factory

    async def simulate(
        self,
        contract_id: str,
        function_name: str,
        arguments: Sequence[stellar_xdr.SCVal],
    ) -> SimulationOutcome:
        if self.identity is None:
            raise ConfigurationError("SERVICE_ACCOUNT_SECRET_KEY not configured")
        public_key = self.identity.public_key

        async with self._server_factory(self.settings.rpc_url) as server:
            try:
                account = await server.load_account(public_key)
            except AccountNotFoundException as exc:
                raise ConfigurationError(f"service account {public_key} does not exist on the ledger") from exc
            except (StellarConnectionError, asyncio.TimeoutError) as exc:
                raise NetworkError(f"failed to load service account: {exc}") from exc

            envelope = self.build_transaction(account, contract_id, function_name, arguments)

            try:
                response = await server.simulate_transaction(envelope)
            except (StellarConnectionError, asyncio.TimeoutError) as exc:
                raise NetworkError(f"failed to simulate {function_name}: {exc}") from exc

        if response.error:
            logger.info("Simulation of %s reported an error: %s", function_name, response.error)
            return SimulationOutcome(error=response.error)
        if not response.results:
            return SimulationOutcome()
        return SimulationOutcome(retval=stellar_xdr.SCVal.from_xdr(response.results[0].xdr))

    def build_transaction(
        self,
        account,
        contract_id: str,
        function_name: str,
        arguments: Sequence[stellar_xdr.SCVal],
    ) -> TransactionEnvelope:
        return (
            TransactionBuilder(
                source_account=account,
                network_passphrase=self.settings.network_passphrase,
                base_fee=BASE_FEE,
            )
            .append_invoke_contract_function_op(
                contract_id=contract_id,
                function_name=function_name,
                parameters=list(arguments),
            )
            .set_timeout(TX_TIMEOUT_SECONDS)
            .build()
        )
