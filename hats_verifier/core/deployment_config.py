"""Typed schema for the per-network deployment configuration.

The deployment pipeline keeps one record per network (``config.json``)::

    {
        "mainnet": {
            "governance": "0x...",
            "executors": ["0x..."],
            "managers": [],
            "timelockDelay": 604800,
            "hatVaultsRegistryConf": {"useKleros": true, ...},
            "hatArbitratorConf": {...},
            "hatKlerosConnectorConf": {...}
        }
    }

Keys are accepted in the camelCase form used by the deployment scripts or in
snake_case. Unknown keys are ignored.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from hats_verifier.core.errors import ConfigError

# Big on-chain quantities are often written as strings to survive JSON.
Numeric = Union[int, str]


class _ConfBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class HATVaultsRegistryConf(_ConfBase):
    """Registry defaults and feature flags."""

    use_kleros: bool = Field(default=False, alias="useKleros")
    bounty_governance_hat: Numeric = Field(alias="bountyGovernanceHAT")
    bounty_hacker_hat_vested: Numeric = Field(alias="bountyHackerHATVested")
    swap_token: str | None = Field(default=None, alias="swapToken")


class HATArbitratorConf(_ConfBase):
    """Parameters of the Kleros-backed HATArbitrator."""

    expert_committee: str = Field(alias="expertCommittee")
    token: str
    bonds_needed_to_start_dispute: Numeric = Field(alias="bondsNeededToStartDispute")
    min_bond_amount: Numeric = Field(alias="minBondAmount")
    resolution_challenge_period: Numeric = Field(alias="resolutionChallengePeriod")
    submit_claim_request_review_period: Numeric = Field(alias="submitClaimRequestReviewPeriod")


class HATKlerosConnectorConf(_ConfBase):
    """Parameters of the HATKlerosConnector."""

    kleros_arbitrator: str = Field(alias="klerosArbitrator")
    arbitrator_extra_data: str = Field(default="0x", alias="arbitratorExtraData")
    winner_multiplier: Numeric = Field(alias="winnerMultiplier")
    loser_multiplier: Numeric = Field(alias="loserMultiplier")


class DeploymentConfig(_ConfBase):
    """Deployment configuration for a single network."""

    governance: str | None = None
    executors: list[str] = Field(default_factory=list)
    managers: list[str] = Field(default_factory=list)
    timelock_delay: Numeric = Field(default=0, alias="timelockDelay")
    hat_vaults_registry_conf: HATVaultsRegistryConf = Field(alias="hatVaultsRegistryConf")
    hat_arbitrator_conf: HATArbitratorConf | None = Field(default=None, alias="hatArbitratorConf")
    hat_kleros_connector_conf: HATKlerosConnectorConf | None = Field(
        default=None, alias="hatKlerosConnectorConf"
    )

    @model_validator(mode="before")
    @classmethod
    def _null_lists_to_empty(cls, data):
        if isinstance(data, dict):
            data = dict(data)
            for key in ("executors", "managers"):
                if key in data and data[key] is None:
                    data[key] = []
        return data

    @model_validator(mode="after")
    def _kleros_confs_present(self) -> "DeploymentConfig":
        if self.use_kleros:
            missing = [
                name
                for name, value in (
                    ("hatArbitratorConf", self.hat_arbitrator_conf),
                    ("hatKlerosConnectorConf", self.hat_kleros_connector_conf),
                )
                if value is None
            ]
            if missing:
                raise ValueError(f"useKleros is enabled but {', '.join(missing)} is missing")
        return self

    @property
    def use_kleros(self) -> bool:
        return self.hat_vaults_registry_conf.use_kleros


def parse_deployment_config(raw: dict, network: str) -> DeploymentConfig:
    """Validate the record for ``network`` out of a network-keyed mapping."""
    if network not in raw:
        known = ", ".join(sorted(raw)) or "none"
        raise ConfigError(f"No deployment config for network '{network}' (known: {known})")
    try:
        return DeploymentConfig.model_validate(raw[network])
    except ValidationError as exc:
        raise ConfigError(f"Invalid deployment config for '{network}': {exc}") from exc


def load_deployment_config(path: str | Path, network: str) -> DeploymentConfig:
    """Load and validate the deployment config of ``network`` from a JSON file."""
    path = Path(path)
    try:
        raw = json.loads(path.read_text())
    except FileNotFoundError as exc:
        raise ConfigError(f"Deployment config not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Deployment config is not valid JSON ({path}): {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Deployment config must be a JSON object keyed by network: {path}")
    return parse_deployment_config(raw, network)
