"""ABI helpers: call encoding, return decoding and event log decoding.

Only the small slice of the ABI needed for read-only verification is covered:
view calls with static or dynamic arguments, and event logs.
"""

from __future__ import annotations

from typing import Any

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import (
    decode_hex,
    encode_hex,
    event_abi_to_log_topic,
    function_abi_to_4byte_selector,
    is_address,
    to_bytes,
    to_checksum_address,
)
from eth_utils.abi import collapse_if_tuple

from hats_verifier.core.errors import ChainReadError, ConfigError


def find_function(abi: list[dict[str, Any]], name: str, arg_count: int) -> dict[str, Any]:
    """Return the function entry called ``name`` taking ``arg_count`` inputs."""
    candidates = [
        entry
        for entry in abi
        if entry.get("type") == "function" and entry.get("name") == name
    ]
    for entry in candidates:
        if len(entry.get("inputs", [])) == arg_count:
            return entry
    if candidates:
        raise ValueError(f"{name} does not accept {arg_count} argument(s)")
    raise ValueError(f"Function {name} not found in ABI")


def find_event(abi: list[dict[str, Any]], name: str) -> dict[str, Any]:
    """Return the event entry called ``name``."""
    for entry in abi:
        if entry.get("type") == "event" and entry.get("name") == name:
            return entry
    raise ValueError(f"Event {name} not found in ABI")


def _types(params: list[dict[str, Any]]) -> list[str]:
    return [collapse_if_tuple(p) for p in params]


def _coerce_arg(abi_type: str, value: Any) -> Any:
    """Convert human-friendly argument values into what eth_abi expects."""
    if abi_type == "address" and isinstance(value, str) and is_address(value):
        return to_checksum_address(value)
    if abi_type.startswith("bytes") and isinstance(value, str):
        return to_bytes(hexstr=value)
    return value


def _normalize(abi_type: str, value: Any) -> Any:
    """Render decoded values in the form the checks compare against."""
    if abi_type == "address":
        return to_checksum_address(value)
    if abi_type.startswith("bytes") and isinstance(value, (bytes, bytearray)):
        return encode_hex(value)
    return value


def encode_call(fn_abi: dict[str, Any], args: tuple[Any, ...]) -> str:
    """Encode calldata for ``fn_abi`` invoked with ``args``."""
    types = _types(fn_abi.get("inputs", []))
    selector = function_abi_to_4byte_selector(fn_abi)
    try:
        coerced = [_coerce_arg(t, v) for t, v in zip(types, args)]
        return encode_hex(selector + encode(types, coerced))
    except (EncodingError, TypeError, ValueError) as exc:
        raise ConfigError(f"Cannot encode arguments {args!r} for {fn_abi.get('name')}: {exc}") from exc


def _raw_bytes(value: Any, what: str, method: str) -> bytes:
    try:
        return decode_hex(value)
    except (TypeError, ValueError) as exc:
        raise ChainReadError(f"{what} is not valid hex: {value!r}", method=method) from exc


def decode_result(fn_abi: dict[str, Any], data: str) -> Any:
    """Decode ``eth_call`` return data; single outputs are unwrapped."""
    name = fn_abi.get("name")
    types = _types(fn_abi.get("outputs", []))
    raw = _raw_bytes(data, f"{name} result", "eth_call")
    if not types:
        return None
    if not raw:
        raise ChainReadError(f"{name} returned no data (is the contract deployed?)", method="eth_call")
    try:
        decoded = decode(types, raw)
        values = [_normalize(t, v) for t, v in zip(types, decoded)]
    except (DecodingError, TypeError, ValueError) as exc:
        raise ChainReadError(f"Cannot decode {name} result: {exc}", method="eth_call") from exc
    if len(values) == 1:
        return values[0]
    return tuple(values)


def event_topic(event_abi: dict[str, Any]) -> str:
    """Keccak topic of the event signature."""
    return encode_hex(event_abi_to_log_topic(event_abi))


def _hex_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    return int(value, 16)


def decode_log(event_abi: dict[str, Any], log: dict[str, Any]) -> dict[str, Any]:
    """Decode a raw ``eth_getLogs`` entry into named event arguments.

    Indexed dynamic types (strings, arrays) are stored as hashes in topics and
    are returned as their 32-byte hash.
    """
    name = event_abi.get("name")
    inputs = event_abi.get("inputs", [])
    topics = log.get("topics", [])[1:]
    indexed = [p for p in inputs if p.get("indexed")]
    plain = [p for p in inputs if not p.get("indexed")]

    if len(topics) != len(indexed):
        raise ChainReadError(
            f"{name} log has {len(topics)} indexed topics, expected {len(indexed)}",
            method="eth_getLogs",
        )

    args: dict[str, Any] = {}
    try:
        for param, topic in zip(indexed, topics):
            abi_type = collapse_if_tuple(param)
            if abi_type in ("string", "bytes") or abi_type.endswith("]") or abi_type.startswith("("):
                args[param["name"]] = topic
                continue
            (value,) = decode([abi_type], _raw_bytes(topic, f"{name} topic", "eth_getLogs"))
            args[param["name"]] = _normalize(abi_type, value)

        if plain:
            types = _types(plain)
            data = _raw_bytes(log.get("data", "0x"), f"{name} data", "eth_getLogs")
            for param, abi_type, value in zip(plain, types, decode(types, data)):
                args[param["name"]] = _normalize(abi_type, value)
    except (DecodingError, TypeError, ValueError) as exc:
        raise ChainReadError(f"Cannot decode {name} log: {exc}", method="eth_getLogs") from exc

    return args


def log_position(log: dict[str, Any]) -> tuple[int, int]:
    """``(block_number, log_index)`` of a raw log."""
    try:
        return _hex_int(log.get("blockNumber", 0)), _hex_int(log.get("logIndex", 0))
    except (TypeError, ValueError) as exc:
        raise ChainReadError(
            f"Log has a malformed position: {log.get('blockNumber')!r}/{log.get('logIndex')!r}",
            method="eth_getLogs",
        ) from exc
