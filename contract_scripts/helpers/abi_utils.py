"""
ABI helpers shared by the deploy, import and interact scripts.

- validation of addresses and ABI documents
- function lookup by name or signature
- argument parsing driven by the declared parameter types
- normalization of return values and event args into JSON-safe data
- decoding of receipt logs against a contract ABI
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from eth_abi.exceptions import DecodingError
from eth_utils import (
    decode_hex,
    event_abi_to_log_topic,
    is_address,
    is_checksum_address,
    to_checksum_address,
)
from web3.exceptions import Web3Exception

from contract_scripts.exceptions import (
    ArgumentError,
    ArtifactNotFoundError,
    FunctionNotFoundError,
    InvalidAbiError,
    InvalidAddressError,
)
from contract_scripts.helpers.web3_setup import to_hex

logger = logging.getLogger(__name__)

READ_ONLY_MUTABILITY = ("view", "pure")

_INT_TYPE = re.compile(r"^u?int(\d*)$")
_BYTES_N_TYPE = re.compile(r"^bytes(\d+)$")


# --------------------------------------------------------------------------- #
# Validation                                                                   #
# --------------------------------------------------------------------------- #


def is_valid_address(value: Any) -> bool:
    """True for a 20-byte hex address whose checksum is valid when mixed-case."""
    if not isinstance(value, str) or not is_address(value):
        return False
    digits = value[2:] if value[:2].lower() == "0x" else value
    if digits in (digits.lower(), digits.upper()):
        return True
    return is_checksum_address(value)


def validate_address(address: str) -> str:
    """Return ``address`` unchanged if it is a valid 20-byte hex address.

    Mixed-case addresses must carry a valid EIP-55 checksum.
    """
    if not is_valid_address(address):
        raise InvalidAddressError(f"Invalid contract address: {address}")
    return address


def validate_abi(abi: Any) -> list[dict[str, Any]]:
    """Check that ``abi`` is a list whose entries all carry a string ``type``."""
    if not isinstance(abi, list):
        raise InvalidAbiError("ABI content is not a valid ABI array.")
    for index, item in enumerate(abi):
        if not isinstance(item, dict) or not isinstance(item.get("type"), str):
            raise InvalidAbiError(f"ABI entry {index} has no string 'type' field.")
    return abi


def load_abi_file(path: str | Path) -> list[dict[str, Any]]:
    """Read and validate a plain JSON ABI file."""
    p = Path(path)
    if not p.exists():
        raise ArtifactNotFoundError(f"ABI file not found at: {p}")
    try:
        abi = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidAbiError(f"Error parsing ABI file: {e}") from e
    return validate_abi(abi)


# --------------------------------------------------------------------------- #
# Lookup                                                                       #
# --------------------------------------------------------------------------- #


def canonical_type(param: Mapping[str, Any]) -> str:
    """Canonical type string of an ABI parameter, expanding tuples."""
    typ = param["type"]
    if typ.startswith("tuple"):
        inner = ",".join(canonical_type(c) for c in param.get("components", []))
        return f"({inner}){typ[len('tuple'):]}"
    return typ


def function_signature(entry: Mapping[str, Any]) -> str:
    types = ",".join(canonical_type(p) for p in entry.get("inputs", []))
    return f"{entry['name']}({types})"


def abi_functions(abi: Sequence[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    return [e for e in abi if e.get("type") == "function"]


def function_names(abi: Sequence[Mapping[str, Any]]) -> list[str]:
    names: list[str] = []
    for entry in abi_functions(abi):
        if entry["name"] not in names:
            names.append(entry["name"])
    return names


def is_read_only(entry: Mapping[str, Any]) -> bool:
    mutability = entry.get("stateMutability")
    if mutability is None:
        # pre-0.5 ABIs only carry the "constant" flag
        return bool(entry.get("constant"))
    return mutability in READ_ONLY_MUTABILITY


def find_function(abi: Sequence[Mapping[str, Any]], name: str) -> Mapping[str, Any]:
    """
    Resolve a function by name, or by full signature to pick an overload.

    Args:
        abi: Contract ABI
        name: ``transfer`` or ``transfer(address,uint256)``

    Raises:
        FunctionNotFoundError: Unknown name, or an overloaded name given
            without its signature.
    """
    functions = abi_functions(abi)
    if "(" in name:
        wanted = name.replace(" ", "")
        for entry in functions:
            if function_signature(entry) == wanted:
                return entry
        candidates = []
    else:
        candidates = [e for e in functions if e["name"] == name]
        if len(candidates) == 1:
            return candidates[0]

    if len(candidates) > 1:
        signatures = ", ".join(function_signature(e) for e in candidates)
        raise FunctionNotFoundError(
            f"Function '{name}' is ambiguous in contract ABI. Use one of: {signatures}"
        )
    available = ", ".join(function_names(abi))
    raise FunctionNotFoundError(
        f"Function '{name}' not found in contract ABI. Available functions: {available}"
    )


def find_probe_function(abi: Sequence[Mapping[str, Any]]) -> Mapping[str, Any] | None:
    """First parameterless view/pure function, used to probe a contract."""
    for entry in abi_functions(abi):
        if is_read_only(entry) and not entry.get("inputs"):
            return entry
    return None


def constructor_inputs(abi: Sequence[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    for entry in abi:
        if entry.get("type") == "constructor":
            return list(entry.get("inputs", []))
    return []


# --------------------------------------------------------------------------- #
# Argument parsing                                                             #
# --------------------------------------------------------------------------- #


def _param_label(param: Mapping[str, Any], index: int | None) -> str:
    name = param.get("name") or (f"#{index}" if index is not None else "value")
    return f"'{name}' ({canonical_type(param)})"


def _split_array_type(typ: str) -> tuple[str, int | None]:
    base, _, dim = typ[:-1].rpartition("[")
    return base, int(dim) if dim else None


def _from_json_text(value: Any, label: str) -> Any:
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise ArgumentError(f"Argument {label} must be JSON: {e}") from e
    return value


def coerce_argument(value: Any, param: Mapping[str, Any], index: int | None = None) -> Any:
    """
    Convert ``value`` to what web3 expects for the declared ABI type.

    Values may come from JSON (numbers, lists, objects) or from command-line
    tokens (always strings). The declared type decides the conversion, so a
    numeric-looking token passed to a ``string`` parameter stays a string.

    Raises:
        ArgumentError: If the value cannot represent the declared type.
    """
    typ = param["type"]
    label = _param_label(param, index)

    if typ.endswith("]"):
        base, size = _split_array_type(typ)
        items = _from_json_text(value, label)
        if not isinstance(items, (list, tuple)):
            raise ArgumentError(f"Argument {label} must be an array")
        if size is not None and len(items) != size:
            raise ArgumentError(f"Argument {label} must have exactly {size} elements, got {len(items)}")
        element = dict(param, type=base)
        return [coerce_argument(item, element) for item in items]

    if typ == "tuple":
        components = param.get("components", [])
        data = _from_json_text(value, label)
        if isinstance(data, Mapping):
            missing = [c["name"] for c in components if c["name"] not in data]
            if missing:
                raise ArgumentError(f"Argument {label} is missing fields: {', '.join(missing)}")
            data = [data[c["name"]] for c in components]
        if not isinstance(data, (list, tuple)) or len(data) != len(components):
            raise ArgumentError(f"Argument {label} must have {len(components)} components")
        return tuple(coerce_argument(v, c, i) for i, (v, c) in enumerate(zip(data, components)))

    if typ == "bool":
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "1"):
            return True
        if isinstance(value, str) and value.strip().lower() in ("false", "0"):
            return False
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        raise ArgumentError(f"Argument {label} must be true or false, got {value!r}")

    if _INT_TYPE.match(typ):
        if isinstance(value, bool):
            raise ArgumentError(f"Argument {label} must be an integer, got {value!r}")
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str):
            text = value.strip()
            try:
                if text.lower().startswith(("0x", "-0x")):
                    return int(text, 16)
                return int(text, 10)
            except ValueError:
                pass
        raise ArgumentError(f"Argument {label} must be an integer, got {value!r}")

    if typ == "address":
        if is_valid_address(value):
            return to_checksum_address(value)
        raise ArgumentError(f"Argument {label} must be a valid address, got {value!r}")

    if typ == "string":
        if isinstance(value, str):
            return value
        raise ArgumentError(f"Argument {label} must be a string, got {value!r}")

    if typ == "bytes" or _BYTES_N_TYPE.match(typ):
        if isinstance(value, (bytes, bytearray)):
            data = bytes(value)
        elif isinstance(value, str) and value.startswith("0x"):
            try:
                data = decode_hex(value)
            except ValueError as e:
                raise ArgumentError(f"Argument {label} is not valid hex: {e}") from e
        else:
            raise ArgumentError(f"Argument {label} must be a 0x-prefixed hex string, got {value!r}")
        match = _BYTES_N_TYPE.match(typ)
        if match and len(data) != int(match.group(1)):
            raise ArgumentError(f"Argument {label} must be {match.group(1)} bytes long, got {len(data)}")
        return data

    # fixed-point and other rarely used types are handed to web3 untouched
    return value


def coerce_arguments(values: Sequence[Any], inputs: Sequence[Mapping[str, Any]]) -> list[Any]:
    if len(values) != len(inputs):
        raise ArgumentError(f"Incorrect number of arguments. Expected {len(inputs)}, got {len(values)}.")
    return [coerce_argument(v, p, i) for i, (v, p) in enumerate(zip(values, inputs))]


def parse_json_args(raw: str | None, inputs: Sequence[Mapping[str, Any]], kind: str = "function") -> list[Any]:
    """
    Parse a JSON array of arguments for a function or constructor.

    Args:
        raw: JSON text such as ``'["0xabc...", 100]'``; may be empty
        inputs: Declared ABI inputs
        kind: ``function`` or ``constructor``, used in error messages

    Raises:
        ArgumentError: Missing arguments, invalid JSON, a non-array value,
            a count mismatch, or a value that does not fit its type.
    """
    if raw is None or raw.strip() == "":
        if inputs:
            raise ArgumentError(f"{kind.capitalize()} arguments required but not provided.")
        return []
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ArgumentError(f"Invalid JSON format for {kind} arguments: {e}") from e
    if not isinstance(parsed, list):
        raise ArgumentError(f"{kind.capitalize()} arguments must be a JSON array.")
    if len(parsed) != len(inputs):
        raise ArgumentError(
            f"Incorrect number of {kind} arguments. Expected {len(inputs)}, got {len(parsed)}."
        )
    return coerce_arguments(parsed, inputs)


def parse_cli_args(tokens: Sequence[str], inputs: Sequence[Mapping[str, Any]]) -> list[Any]:
    """Parse positional command-line tokens against the declared inputs."""
    if len(tokens) != len(inputs):
        raise ArgumentError(
            f"Incorrect number of function arguments. Expected {len(inputs)}, got {len(tokens)}."
        )
    return coerce_arguments(tokens, inputs)


# --------------------------------------------------------------------------- #
# Result normalization                                                         #
# --------------------------------------------------------------------------- #


def _is_index_key(key: Any) -> bool:
    if isinstance(key, bool):
        return False
    if isinstance(key, int):
        return True
    return isinstance(key, str) and key.isdigit()


def format_return_value(value: Any, param: Mapping[str, Any] | None = None) -> Any:
    """
    Make a decoded value JSON-safe.

    Integers become decimal strings, bytes become 0x hex, tuples with named
    components become objects and mappings drop their numeric index keys.
    """
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return to_hex(bytes(value))
    if isinstance(value, Mapping):
        return {k: format_return_value(v) for k, v in value.items() if not _is_index_key(k)}
    if isinstance(value, (list, tuple)):
        typ = param.get("type", "") if param else ""
        if typ.endswith("]"):
            element = dict(param, type=_split_array_type(typ)[0])
            return [format_return_value(v, element) for v in value]
        components = param.get("components") if param else None
        if components and len(components) == len(value) and all(c.get("name") for c in components):
            return {c["name"]: format_return_value(v, c) for c, v in zip(components, value)}
        if components and len(components) == len(value):
            return [format_return_value(v, c) for c, v in zip(components, value)]
        return [format_return_value(v) for v in value]
    return value


def format_call_result(result: Any, outputs: Sequence[Mapping[str, Any]]) -> Any:
    """Normalize the value returned by a contract call.

    web3 returns a bare value for single-output functions and a list for
    several outputs; the latter becomes an object when every output is named.
    """
    if len(outputs) == 1:
        return format_return_value(result, outputs[0])
    if len(outputs) > 1 and isinstance(result, (list, tuple)):
        return format_return_value(result, {"type": "tuple", "components": list(outputs)})
    return format_return_value(result)


# --------------------------------------------------------------------------- #
# Logs                                                                         #
# --------------------------------------------------------------------------- #


def parse_receipt_logs(contract: Any, receipt: Mapping[str, Any]) -> list[dict[str, Any]]:
    """
    Decode receipt logs against the contract's ABI events.

    Returns one entry per log: ``{"name", "args", "index"}`` when decoded,
    ``{"unparsed": True, "topic0", "index"}`` otherwise.
    """
    events = [e for e in contract.abi if e.get("type") == "event" and not e.get("anonymous")]
    by_topic = {to_hex(event_abi_to_log_topic(e)): e for e in events}

    parsed: list[dict[str, Any]] = []
    for index, log in enumerate(receipt.get("logs", [])):
        topics = log.get("topics") or []
        topic0 = to_hex(topics[0]) if topics else None
        event_abi = by_topic.get(topic0) if topic0 else None
        decoded = None
        if event_abi is not None:
            try:
                decoded = contract.events[event_abi["name"]]().process_log(log)
            except (Web3Exception, DecodingError, ValueError, KeyError, TypeError) as e:
                logger.debug(f"Could not decode log {index}: {e}")

        if decoded is None:
            logger.info(f"  [{index}] Unparsed log (topic0: {topic0})")
            parsed.append({"unparsed": True, "topic0": topic0, "index": index})
            continue

        args = decoded["args"]
        inputs = event_abi.get("inputs", [])
        if inputs and all(inp.get("name") in args for inp in inputs):
            formatted = [format_return_value(args[inp["name"]], inp) for inp in inputs]
        else:
            formatted = [format_return_value(v) for v in args.values()]
        logger.info(f"  [{index}] {decoded['event']}: {json.dumps(formatted)}")
        parsed.append({"name": decoded["event"], "args": formatted, "index": index})
    return parsed
