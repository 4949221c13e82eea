"""Core configuration for the HATS deployment verifier."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="HATS_VERIFY_",
        case_sensitive=False,
    )

    # ── App ──────────────────────────────────────────────────────────────
    app_name: str = "HATS Deployment Verifier"
    app_env: Literal["development", "ci", "staging", "production"] = "development"
    log_level: str = "INFO"

    # ── Network / RPC ────────────────────────────────────────────────────
    network: str = "hardhat"
    rpc_url: str = "http://127.0.0.1:8545"
    rpc_timeout: float = 30.0
    log_chunk_size: int = 0  # 0 = fetch the whole block range in one request

    # ── Deployment inputs ────────────────────────────────────────────────
    deployments_dir: str = "deployments"
    config_path: str = "config.json"
    deployer: str = ""  # empty = first account reported by the node

    # ── Checks ───────────────────────────────────────────────────────────
    strict_role_grants: bool = False


@lru_cache
def get_settings() -> Settings:
    """Return cached settings singleton."""
    return Settings()
