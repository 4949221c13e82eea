"""hats-verify: check a HATS deployment against its intended topology.

Usage:
    hats-verify verify                   Verify the deployment on the configured network
    hats-verify verify --network sepolia --rpc-url https://...
    hats-verify networks                 List known networks
    hats-verify config                   Show current settings
    hats-verify --version                Print version

Exit codes:
    0  every check passed
    1  one or more checks failed
    2  the run could not complete (RPC, artifact or config error)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from hats_verifier import __version__
from hats_verifier.core.errors import VerificationFailedError, VerifierError


# ── Coloured output helpers ──────────────────────────────────────────────────

_RESET = "\033[0m"
_BOLD = "\033[1m"
_RED = "\033[91m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_DIM = "\033[2m"

EXIT_OK = 0
EXIT_CHECKS_FAILED = 1
EXIT_ERROR = 2


def _c(text: str, code: str) -> str:
    return f"{code}{text}{_RESET}"


BANNER = f"""
{_BOLD}{_CYAN}HATS deployment verifier{_RESET}
  {_DIM}post-deployment topology checks, v{__version__}{_RESET}
"""


# ── CLI argument parser ─────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hats-verify",
        description="Verify a HATS deployment against its intended topology",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    parser.add_argument("--no-banner", action="store_true", help="Suppress the startup banner")

    sub = parser.add_subparsers(dest="command")

    # ── verify ───────────────────────────────────────────────────────────────
    verify_p = sub.add_parser("verify", help="Run every deployment check")
    verify_p.add_argument("--network", "-n", help="Network name (default: settings.network)")
    verify_p.add_argument("--rpc-url", help="JSON-RPC endpoint of the node")
    verify_p.add_argument("--config", "-c", dest="config_path", help="Path to the network-keyed config JSON")
    verify_p.add_argument("--deployments", "-d", dest="deployments_dir", help="hardhat-deploy deployments directory")
    verify_p.add_argument("--deployer", help="Deployer address (default: first node account)")
    verify_p.add_argument(
        "--strict",
        action="store_true",
        help="Count each unexpected role grant as a failed check",
    )
    verify_p.add_argument("--no-color", action="store_true", help="Plain check output")

    # ── networks / config ────────────────────────────────────────────────────
    sub.add_parser("networks", help="List known networks")
    sub.add_parser("config", help="Show current settings")

    return parser


# ── Verify command ───────────────────────────────────────────────────────────


async def _run_verify(args: argparse.Namespace) -> int:
    """Run the verifier and map its outcome to an exit code."""
    from hats_verifier.chain.artifacts import DeploymentStore
    from hats_verifier.chain.reader import RpcChainStateReader
    from hats_verifier.chain.rpc import JsonRpcClient
    from hats_verifier.core.config import get_settings
    from hats_verifier.core.deployment_config import load_deployment_config
    from hats_verifier.core.logging import NetworkLogFilter
    from hats_verifier.verification.report import ConsoleReporter
    from hats_verifier.verification.runner import verify_deployment

    settings = get_settings()
    network = args.network or settings.network
    rpc_url = args.rpc_url or settings.rpc_url
    config_path = args.config_path or settings.config_path
    deployments_dir = args.deployments_dir or settings.deployments_dir
    deployer = args.deployer or settings.deployer
    strict = args.strict or settings.strict_role_grants

    for handler in logging.getLogger().handlers:
        handler.addFilter(NetworkLogFilter(network))

    try:
        config = load_deployment_config(config_path, network)
        async with JsonRpcClient(rpc_url, timeout=settings.rpc_timeout) as rpc:
            reader = RpcChainStateReader(
                rpc,
                DeploymentStore(deployments_dir, network),
                log_chunk_size=settings.log_chunk_size,
            )
            await verify_deployment(
                reader,
                config,
                network=network,
                deployer=deployer,
                reporter=ConsoleReporter(color=not args.no_color),
                strict_role_grants=strict,
            )
    except VerificationFailedError as exc:
        print(_c(f"\n{exc}", _RED), file=sys.stderr)
        return EXIT_CHECKS_FAILED
    except VerifierError as exc:
        print(_c(f"\nVerification aborted: {exc}", _RED), file=sys.stderr)
        return EXIT_ERROR

    return EXIT_OK


# ── Networks command ─────────────────────────────────────────────────────────


def _run_networks() -> int:
    from hats_verifier.core.networks import get_all_networks

    print(f"\n{_BOLD}Known networks{_RESET}\n")
    for net in get_all_networks():
        tag = "local" if net.is_local else ("testnet" if net.is_testnet else "")
        print(f"  {net.name:<12} {_DIM}{net.chain_id:>9}{_RESET}  {net.display_name}  {_c(tag, _DIM)}")
    print()
    return EXIT_OK


# ── Config command ───────────────────────────────────────────────────────────


def _run_config() -> int:
    """Print current settings (redacted)."""
    from hats_verifier.core.config import get_settings

    s = get_settings()
    print(f"\n{_BOLD}Verifier Configuration{_RESET}\n")
    for field_name in sorted(type(s).model_fields.keys()):
        val = getattr(s, field_name, "")
        # RPC URLs often embed provider keys
        if field_name == "rpc_url" and val and "://" in val and "/v" in val:
            scheme, _, rest = val.partition("://")
            val = f"{scheme}://{rest.split('/', 1)[0]}/****"
        print(f"  {_DIM}{field_name}:{_RESET}  {val}")
    print()
    return EXIT_OK


# ── Entrypoint ───────────────────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"hats-verify {__version__}")
        return EXIT_OK

    if not args.no_banner:
        print(BANNER, file=sys.stderr)

    if not args.command:
        parser.print_help()
        return EXIT_OK

    from hats_verifier.core.config import get_settings
    from hats_verifier.core.logging import setup_logging

    settings = get_settings()
    setup_logging(env=settings.app_env, log_level=settings.log_level)

    if args.command == "config":
        return _run_config()

    if args.command == "networks":
        return _run_networks()

    if args.command == "verify":
        return asyncio.run(_run_verify(args))

    parser.print_help()
    return EXIT_OK


def entrypoint() -> None:
    sys.exit(main())


if __name__ == "__main__":
    entrypoint()
