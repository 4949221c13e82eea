"""Tests for the deployment config schema (hats_verifier/core/deployment_config.py)."""

from __future__ import annotations

import json

import pytest

from hats_verifier.core.deployment_config import (
    DeploymentConfig,
    load_deployment_config,
    parse_deployment_config,
)
from hats_verifier.core.errors import ConfigError
from hats_verifier.tests.conftest import GOVERNANCE

REGISTRY_CONF = {"bountyGovernanceHAT": 1000, "bountyHackerHATVested": 0}


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "hardhat": {"timelockDelay": 300, "hatVaultsRegistryConf": REGISTRY_CONF},
        "mainnet": {
            "governance": GOVERNANCE,
            "executors": None,
            "managers": [GOVERNANCE],
            "timelockDelay": "604800",
            "hatVaultsRegistryConf": {
                "useKleros": False,
                "bountyGovernanceHAT": 1000,
                "bountyHackerHATVested": 0,
                "swapToken": "0x51c2eb9640a15b9cd5ac4c97d70a75e7a8d7d6e9",
            },
            "rewardControllersConf": [{"startBlock": 1}],
        },
    }))
    return path


class TestLoadDeploymentConfig:
    def test_camel_case_keys(self, config_file):
        config = load_deployment_config(config_file, "mainnet")
        assert config.governance == GOVERNANCE
        assert config.timelock_delay == "604800"
        assert config.hat_vaults_registry_conf.bounty_governance_hat == 1000
        assert config.hat_vaults_registry_conf.swap_token.startswith("0x51c2")
        assert config.use_kleros is False

    def test_null_list_becomes_empty(self, config_file):
        config = load_deployment_config(config_file, "mainnet")
        assert config.executors == []

    def test_defaults(self, config_file):
        config = load_deployment_config(config_file, "hardhat")
        assert config.governance is None
        assert config.executors == []
        assert config.managers == []
        assert config.hat_vaults_registry_conf.use_kleros is False
        assert config.hat_arbitrator_conf is None

    def test_unknown_network(self, config_file):
        with pytest.raises(ConfigError, match="sepolia"):
            load_deployment_config(config_file, "sepolia")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_deployment_config(tmp_path / "nope.json", "mainnet")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="not valid JSON"):
            load_deployment_config(path, "mainnet")

    def test_top_level_must_be_object(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[]")
        with pytest.raises(ConfigError):
            load_deployment_config(path, "mainnet")


class TestSchema:
    def test_snake_case_keys_accepted(self):
        config = DeploymentConfig.model_validate({
            "governance": GOVERNANCE,
            "timelock_delay": 5,
            "hat_vaults_registry_conf": REGISTRY_CONF,
        })
        assert config.timelock_delay == 5

    def test_registry_conf_required(self):
        with pytest.raises(ConfigError, match="hatVaultsRegistryConf"):
            parse_deployment_config({"mainnet": {"governance": GOVERNANCE}}, "mainnet")

    @pytest.mark.parametrize("missing", ["bountyGovernanceHAT", "bountyHackerHATVested"])
    def test_bounty_split_required(self, missing):
        registry = {k: v for k, v in REGISTRY_CONF.items() if k != missing}
        with pytest.raises(ConfigError, match=missing):
            parse_deployment_config({"mainnet": {"hatVaultsRegistryConf": registry}}, "mainnet")

    def test_kleros_requires_sub_configs(self):
        with pytest.raises(ConfigError, match="hatArbitratorConf"):
            parse_deployment_config(
                {"mainnet": {"hatVaultsRegistryConf": {**REGISTRY_CONF, "useKleros": True}}},
                "mainnet",
            )

    def test_kleros_config(self, kleros_config):
        assert kleros_config.use_kleros
        assert kleros_config.hat_arbitrator_conf.resolution_challenge_period == 432000
        assert kleros_config.hat_kleros_connector_conf.winner_multiplier == 3000

    def test_extra_data_defaults_to_empty_bytes(self):
        config = DeploymentConfig.model_validate({
            "hatVaultsRegistryConf": {**REGISTRY_CONF, "useKleros": True},
            "hatArbitratorConf": {
                "expertCommittee": GOVERNANCE,
                "token": GOVERNANCE,
                "bondsNeededToStartDispute": 1,
                "minBondAmount": 1,
                "resolutionChallengePeriod": 1,
                "submitClaimRequestReviewPeriod": 1,
            },
            "hatKlerosConnectorConf": {
                "klerosArbitrator": GOVERNANCE,
                "winnerMultiplier": 1,
                "loserMultiplier": 1,
            },
        })
        assert config.hat_kleros_connector_conf.arbitrator_extra_data == "0x"
