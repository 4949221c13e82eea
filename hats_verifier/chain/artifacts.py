"""Read hardhat-deploy deployment artifacts from disk."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from eth_utils import is_address, to_checksum_address

from hats_verifier.core.errors import DeploymentNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Deployment:
    """A deployed contract as recorded by the deployment pipeline."""

    name: str
    address: str
    abi: list[dict[str, Any]] = field(default_factory=list)
    block_number: int | None = None
    transaction_hash: str = ""


class DeploymentStore:
    """Load ``<deployments_dir>/<network>/<ContractName>.json`` artifacts.

    Artifacts are local files written once by the deployment pipeline, so
    they are memoized for the lifetime of the store.
    """

    def __init__(self, deployments_dir: str | Path, network: str) -> None:
        self.root = Path(deployments_dir) / network
        self.network = network
        self._cache: dict[str, Deployment] = {}

    def get(self, contract_name: str) -> Deployment:
        """Return the deployment of ``contract_name``."""
        if contract_name in self._cache:
            return self._cache[contract_name]

        path = self.root / f"{contract_name}.json"
        try:
            data = json.loads(path.read_text())
        except FileNotFoundError as exc:
            raise DeploymentNotFoundError(contract_name, self.network, str(path)) from exc
        except json.JSONDecodeError as exc:
            raise DeploymentNotFoundError(
                contract_name, self.network, f"unreadable artifact {path}: {exc}"
            ) from exc

        if not isinstance(data, dict):
            raise DeploymentNotFoundError(
                contract_name, self.network, f"artifact {path} is not a JSON object"
            )

        deployment = self._parse(contract_name, data)
        self._cache[contract_name] = deployment
        logger.debug("Loaded deployment %s at %s", contract_name, deployment.address)
        return deployment

    def _parse(self, contract_name: str, data: dict[str, Any]) -> Deployment:
        address = data.get("address", "")
        if not is_address(address):
            raise DeploymentNotFoundError(
                contract_name, self.network, f"artifact has no valid address ({address!r})"
            )

        receipt = data.get("receipt") or {}
        if not isinstance(receipt, dict):
            receipt = {}
        block_number = receipt.get("blockNumber")
        if isinstance(block_number, str):
            try:
                block_number = int(block_number, 16) if block_number.startswith("0x") else int(block_number)
            except ValueError as exc:
                raise DeploymentNotFoundError(
                    contract_name, self.network, f"artifact has a malformed block number ({block_number!r})"
                ) from exc

        return Deployment(
            name=contract_name,
            address=to_checksum_address(address),
            abi=data.get("abi", []),
            block_number=block_number,
            transaction_hash=data.get("transactionHash", "") or receipt.get("transactionHash", ""),
        )
