"""Chain State Reader: read-only access to deployed contract state."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from eth_utils import to_checksum_address

from hats_verifier.chain.abi import (
    decode_log,
    decode_result,
    encode_call,
    event_topic,
    find_event,
    find_function,
    log_position,
)
from hats_verifier.chain.artifacts import DeploymentStore
from hats_verifier.chain.rpc import JsonRpcClient
from hats_verifier.core.errors import ChainReadError, DeploymentNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogEvent:
    """A decoded historical event."""

    event: str
    args: dict[str, Any] = field(default_factory=dict)
    block_number: int = 0
    log_index: int = 0
    transaction_hash: str = ""


class ChainStateReader(Protocol):
    """What the checks need from the chain. Reads are never cached."""

    async def read(self, contract_name: str, method: str, *args: Any) -> Any: ...

    async def get_deployed_address(self, contract_name: str) -> str: ...

    async def get_deployment_block(self, contract_name: str) -> int: ...

    async def get_latest_block(self) -> int: ...

    async def get_logs(
        self, contract_name: str, event_name: str, from_block: int, to_block: int
    ) -> list[LogEvent]: ...

    async def get_accounts(self) -> list[str]: ...


class RpcChainStateReader:
    """``ChainStateReader`` backed by deployment artifacts and a JSON-RPC node."""

    def __init__(
        self,
        rpc: JsonRpcClient,
        deployments: DeploymentStore,
        log_chunk_size: int = 0,
    ) -> None:
        self.rpc = rpc
        self.deployments = deployments
        self.log_chunk_size = log_chunk_size

    async def read(self, contract_name: str, method: str, *args: Any) -> Any:
        """Call a view function (or public state variable getter)."""
        deployment = self.deployments.get(contract_name)
        try:
            fn_abi = find_function(deployment.abi, method, len(args))
        except ValueError as exc:
            raise DeploymentNotFoundError(contract_name, self.deployments.network, str(exc)) from exc

        data = await self.rpc.call(
            "eth_call",
            [{"to": deployment.address, "data": encode_call(fn_abi, args)}, "latest"],
        )
        if not isinstance(data, str):
            raise ChainReadError(f"eth_call {contract_name}.{method} returned {data!r}", method="eth_call")
        return decode_result(fn_abi, data)

    async def get_deployed_address(self, contract_name: str) -> str:
        return self.deployments.get(contract_name).address

    async def get_deployment_block(self, contract_name: str) -> int:
        deployment = self.deployments.get(contract_name)
        if deployment.block_number is None:
            raise DeploymentNotFoundError(
                contract_name, self.deployments.network, "artifact has no receipt block number"
            )
        return deployment.block_number

    async def get_latest_block(self) -> int:
        result = await self.rpc.call("eth_blockNumber")
        try:
            return int(result, 16)
        except (TypeError, ValueError) as exc:
            raise ChainReadError(f"eth_blockNumber returned {result!r}", method="eth_blockNumber") from exc

    async def get_accounts(self) -> list[str]:
        result = await self.rpc.call("eth_accounts")
        if not isinstance(result, list):
            raise ChainReadError(f"eth_accounts returned {result!r}", method="eth_accounts")
        try:
            return [to_checksum_address(a) for a in result]
        except (TypeError, ValueError) as exc:
            raise ChainReadError(f"eth_accounts returned {result!r}", method="eth_accounts") from exc

    async def get_logs(
        self, contract_name: str, event_name: str, from_block: int, to_block: int
    ) -> list[LogEvent]:
        """Fetch and decode ``event_name`` logs emitted in ``[from_block, to_block]``."""
        deployment = self.deployments.get(contract_name)
        try:
            event_abi = find_event(deployment.abi, event_name)
        except ValueError as exc:
            raise DeploymentNotFoundError(contract_name, self.deployments.network, str(exc)) from exc
        if from_block > to_block:
            raise DeploymentNotFoundError(
                contract_name,
                self.deployments.network,
                f"deployed at block {from_block} but the node is at block {to_block}"
                " (was the node restarted after deploying?)",
            )
        topic = event_topic(event_abi)

        raw_logs: list[dict[str, Any]] = []
        for start, end in self._ranges(from_block, to_block):
            result = await self.rpc.call(
                "eth_getLogs",
                [{
                    "address": deployment.address,
                    "topics": [topic],
                    "fromBlock": hex(start),
                    "toBlock": hex(end),
                }],
            )
            if not isinstance(result, list) or not all(isinstance(log, dict) for log in result):
                raise ChainReadError(f"eth_getLogs returned {result!r}", method="eth_getLogs")
            raw_logs.extend(result)

        logger.debug(
            "Fetched %d %s logs from %s",
            len(raw_logs),
            event_name,
            contract_name,
            extra={"contract": contract_name, "block": to_block},
        )

        events = []
        for log in sorted(raw_logs, key=log_position):
            block_number, log_index = log_position(log)
            events.append(
                LogEvent(
                    event=event_name,
                    args=decode_log(event_abi, log),
                    block_number=block_number,
                    log_index=log_index,
                    transaction_hash=log.get("transactionHash", ""),
                )
            )
        return events

    def _ranges(self, from_block: int, to_block: int) -> list[tuple[int, int]]:
        if self.log_chunk_size <= 0:
            return [(from_block, to_block)]
        return [
            (start, min(start + self.log_chunk_size - 1, to_block))
            for start in range(from_block, to_block + 1, self.log_chunk_size)
        ]
