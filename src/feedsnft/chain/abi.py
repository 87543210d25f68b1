"""
ABI artifacts and codec.

Artifacts are the ``abis/<ContractName>.json`` files written by
``feedsnft abigen``.  The codec turns ABI entries into calldata and turns
return data and event logs back into Python values using eth-abi.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from eth_abi import decode, encode
from eth_hash.auto import keccak


def keccak256(data: bytes) -> bytes:
    # NOTE: Keccak-256 != SHA3-256 (NIST). Never use hashlib.sha3_256 here.
    return keccak(data)


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------

def find_abi_dir(start: Optional[Path] = None) -> Path:
    """
    Locate the ABI artifact directory.

    ``FEEDS_ABI_DIR`` wins; otherwise the nearest ``abis/`` directory from
    ``start`` (default: cwd) upward.  Falls back to ``<start>/abis`` so that
    abigen has somewhere to write.
    """
    env_dir = os.environ.get("FEEDS_ABI_DIR")
    if env_dir:
        return Path(env_dir).resolve()

    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        candidate = parent / "abis"
        if candidate.is_dir():
            return candidate
    return current / "abis"


@lru_cache(maxsize=32)
def _read_artifact(path: str) -> tuple[dict[str, Any], ...]:
    with open(path, "r", encoding="utf-8") as f:
        artifact = json.load(f)
    # abigen writes a bare ABI list; compiler artifacts wrap it in {"abi": ...}
    if isinstance(artifact, dict):
        artifact = artifact.get("abi", [])
    if not isinstance(artifact, list):
        raise ValueError(f"Not an ABI artifact: {path}")
    return tuple(artifact)


def load_abi(contract_name: str, abi_dir: Optional[Path] = None) -> list[dict[str, Any]]:
    """
    Load the ABI for a contract.

    Args:
        contract_name: Contract name (e.g., "FeedsNFTSticker")
        abi_dir: Artifact directory (default: find_abi_dir())

    Raises:
        FileNotFoundError: If the artifact does not exist
    """
    abi_path = (abi_dir or find_abi_dir()) / f"{contract_name}.json"
    if not abi_path.exists():
        raise FileNotFoundError(
            f"ABI not found: {abi_path}. Run 'feedsnft abigen' first."
        )
    return list(_read_artifact(str(abi_path)))


def write_abi(abi: list[dict[str, Any]], path: Path) -> Path:
    """Write an ABI as pretty-printed JSON (2-space indent)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(abi, indent=2), encoding="utf-8")
    _read_artifact.cache_clear()
    return path


# ---------------------------------------------------------------------------
# Decoded values
# ---------------------------------------------------------------------------

class Record(tuple):
    """
    A decoded struct or multi-value return.

    Behaves as a tuple, and fields can also be read by ABI name:
    ``order[12]``, ``order["filled"]`` and ``order.filled`` are all valid.
    """

    def __new__(cls, values: Iterable[Any], names: Sequence[str]) -> "Record":
        obj = super().__new__(cls, values)
        obj._names = tuple(names)
        return obj

    def __getitem__(self, key):  # type: ignore[override]
        if isinstance(key, str):
            try:
                key = self._names.index(key)
            except ValueError:
                raise KeyError(key) from None
        return tuple.__getitem__(self, key)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None

    def keys(self) -> list[str]:
        return [n for n in self._names if n]

    def as_dict(self) -> dict[str, Any]:
        return {n: v for n, v in zip(self._names, self) if n}

    def __repr__(self) -> str:
        if any(self._names):
            inner = ", ".join(f"{n or i}={v!r}" for i, (n, v) in enumerate(zip(self._names, self)))
            return f"Record({inner})"
        return f"Record{tuple.__repr__(self)}"


def canonical_type(param: dict[str, Any]) -> str:
    """ABI type string with tuple components expanded, e.g. ``(uint256,address)[]``."""
    t = param["type"]
    if t.startswith("tuple"):
        inner = ",".join(canonical_type(c) for c in param.get("components", []))
        return f"({inner}){t[len('tuple'):]}"
    return t


def _wrap(param: dict[str, Any], value: Any) -> Any:
    t = param["type"]
    if not t.startswith("tuple"):
        return value
    return _wrap_dims(param.get("components", []), t[len("tuple"):], value)


def _wrap_dims(components: list[dict[str, Any]], dims: str, value: Any) -> Any:
    if not dims:
        return Record(
            (_wrap(c, v) for c, v in zip(components, value)),
            [c.get("name", "") for c in components],
        )
    inner = dims[: dims.rindex("[")]
    return [_wrap_dims(components, inner, v) for v in value]


def _coerce(abi_type: str, value: Any) -> Any:
    """Accept the string forms CLI users type (e.g. "600000000000000000")."""
    if abi_type.endswith("]"):
        inner = abi_type[: abi_type.rindex("[")]
        return [_coerce(inner, v) for v in value]
    if abi_type.startswith(("uint", "int")) and isinstance(value, str):
        return int(value, 0)
    if abi_type.startswith("bytes") and isinstance(value, str):
        return bytes.fromhex(value[2:] if value.startswith("0x") else value)
    if abi_type == "bool" and isinstance(value, str):
        return value.lower() in ("1", "true", "yes")
    return value


# ---------------------------------------------------------------------------
# Functions
# ---------------------------------------------------------------------------

def find_function(abi: list[dict[str, Any]], name: str, nargs: Optional[int] = None) -> dict[str, Any]:
    """
    Find a function entry by name.

    Overloads are told apart by argument count, which is how
    ``safeTransferFrom(from, to, id, amount)`` is picked over the five
    argument ERC-1155 variant.
    """
    candidates = [e for e in abi if e.get("type") == "function" and e.get("name") == name]
    if nargs is not None and len(candidates) > 1:
        candidates = [e for e in candidates if len(e.get("inputs", [])) == nargs]

    if not candidates:
        raise ValueError(f"Function {name} not found in ABI")
    if len(candidates) > 1:
        raise ValueError(f"Function {name} is ambiguous in ABI ({len(candidates)} overloads)")
    return candidates[0]


def function_signature(entry: dict[str, Any]) -> str:
    types = ",".join(canonical_type(i) for i in entry.get("inputs", []))
    return f"{entry['name']}({types})"


def function_selector(entry: dict[str, Any]) -> bytes:
    return keccak256(function_signature(entry).encode("utf-8"))[:4]


def encode_args(params: list[dict[str, Any]], args: Sequence[Any]) -> bytes:
    if len(params) != len(args):
        raise ValueError(f"Expected {len(params)} arguments, got {len(args)}")
    if not params:
        return b""
    types = [canonical_type(p) for p in params]
    return encode(types, [_coerce(t, a) for t, a in zip(types, args)])


def encode_function_call(abi: list[dict[str, Any]], function_name: str, args: Sequence[Any]) -> str:
    """
    ABI-encode a function call.

    Returns:
        0x-prefixed hex encoded calldata
    """
    entry = find_function(abi, function_name, len(args))
    return "0x" + function_selector(entry).hex() + encode_args(entry.get("inputs", []), args).hex()


def decode_function_result(abi: list[dict[str, Any]], function_name: str, data: str, nargs: Optional[int] = None) -> Any:
    """
    ABI-decode a function call result.

    Returns:
        None for no outputs, the bare value for one plain output, otherwise
        a Record.
    """
    entry = find_function(abi, function_name, nargs)
    outputs = entry.get("outputs", [])
    if not outputs:
        return None

    raw = bytes.fromhex(data[2:] if data.startswith("0x") else data)
    decoded = decode([canonical_type(o) for o in outputs], raw)

    if len(outputs) == 1:
        return _wrap(outputs[0], decoded[0])
    return Record(
        (_wrap(o, v) for o, v in zip(outputs, decoded)),
        [o.get("name", "") for o in outputs],
    )


def encode_constructor_args(abi: list[dict[str, Any]], args: Sequence[Any]) -> str:
    """Hex (no 0x) of the constructor arguments appended to creation bytecode."""
    if not args:
        return ""
    constructor = next((e for e in abi if e.get("type") == "constructor"), None)
    if constructor is None:
        raise ValueError("Constructor not found in ABI, but constructor args were provided")
    return encode_args(constructor.get("inputs", []), args).hex()


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

def find_event(abi: list[dict[str, Any]], name: str) -> dict[str, Any]:
    for entry in abi:
        if entry.get("type") == "event" and entry.get("name") == name:
            return entry
    raise ValueError(f"Event {name} not found in ABI")


def event_topic(entry: dict[str, Any]) -> str:
    """topics[0] for a non-anonymous event."""
    types = ",".join(canonical_type(i) for i in entry.get("inputs", []))
    return "0x" + keccak256(f"{entry['name']}({types})".encode("utf-8")).hex()


def _is_dynamic(abi_type: str) -> bool:
    return abi_type in ("string", "bytes") or abi_type.endswith("]") or abi_type.startswith("(")


def decode_event(entry: dict[str, Any], log: dict[str, Any]) -> Record:
    """
    Decode an event log into a Record keyed by argument name.

    Indexed dynamic values (strings, arrays) are only available as their
    topic hash and are returned as that hex string.
    """
    inputs = entry.get("inputs", [])
    topics = list(log.get("topics", []))
    if not entry.get("anonymous"):
        topics = topics[1:]

    plain = [i for i in inputs if not i.get("indexed")]
    data = log.get("data", "0x")
    raw = bytes.fromhex(data[2:] if data.startswith("0x") else data)
    plain_values = iter(decode([canonical_type(i) for i in plain], raw) if plain else ())
    topic_values = iter(topics)

    values = []
    for param in inputs:
        t = canonical_type(param)
        if param.get("indexed"):
            topic = next(topic_values)
            if _is_dynamic(t):
                values.append(topic)
            else:
                values.append(decode([t], bytes.fromhex(topic[2:]))[0])
        else:
            values.append(_wrap(param, next(plain_values)))

    return Record(values, [i.get("name", "") for i in inputs])
