"""Networks the HATS contracts are deployed to."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NetworkConfig:
    """Static metadata for a deployment network."""

    name: str
    chain_id: int
    display_name: str
    is_local: bool = False
    is_testnet: bool = False


# ── Network Registry ─────────────────────────────────────────────────────────

NETWORKS: dict[str, NetworkConfig] = {
    "hardhat": NetworkConfig(
        name="hardhat",
        chain_id=31337,
        display_name="Hardhat Network",
        is_local=True,
    ),
    "localhost": NetworkConfig(
        name="localhost",
        chain_id=31337,
        display_name="Local node",
        is_local=True,
    ),
    "mainnet": NetworkConfig(
        name="mainnet",
        chain_id=1,
        display_name="Ethereum Mainnet",
    ),
    "sepolia": NetworkConfig(
        name="sepolia",
        chain_id=11155111,
        display_name="Sepolia",
        is_testnet=True,
    ),
    "goerli": NetworkConfig(
        name="goerli",
        chain_id=5,
        display_name="Goerli",
        is_testnet=True,
    ),
    "optimism": NetworkConfig(
        name="optimism",
        chain_id=10,
        display_name="Optimism",
    ),
    "arbitrum": NetworkConfig(
        name="arbitrum",
        chain_id=42161,
        display_name="Arbitrum One",
    ),
    "polygon": NetworkConfig(
        name="polygon",
        chain_id=137,
        display_name="Polygon Mainnet",
    ),
    "bsc": NetworkConfig(
        name="bsc",
        chain_id=56,
        display_name="BNB Smart Chain",
    ),
    "avalanche": NetworkConfig(
        name="avalanche",
        chain_id=43114,
        display_name="Avalanche C-Chain",
    ),
    "gnosis": NetworkConfig(
        name="gnosis",
        chain_id=100,
        display_name="Gnosis Chain",
    ),
    "base": NetworkConfig(
        name="base",
        chain_id=8453,
        display_name="Base",
    ),
}


def get_network(name: str) -> NetworkConfig:
    """Look up a network by name.

    Unknown names are treated as remote, non-local networks so that custom
    RPC targets can still be verified.
    """
    known = NETWORKS.get(name.lower())
    if known:
        return known
    return NetworkConfig(name=name, chain_id=0, display_name=name)


def is_local_network(name: str) -> bool:
    """True for in-process or developer-node networks."""
    return get_network(name).is_local


def get_all_networks() -> list[NetworkConfig]:
    """Return all registered networks."""
    return list(NETWORKS.values())
