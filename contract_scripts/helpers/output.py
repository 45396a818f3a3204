"""
JSON result output.

Every script prints exactly one JSON object for the calling process, preceded
by a marker line. Log lines share stdout, so consumers should use
:func:`extract_json_payload` instead of parsing the whole output.
"""

from __future__ import annotations

import json
import sys
from typing import Any, TextIO

DEPLOYMENT_MARKER = "📦 Deployment result (JSON):"
INTERACTION_MARKER = "📦 Interaction result (JSON):"


def emit_result(payload: dict[str, Any], marker: str, *, compact: bool = False, stream: TextIO | None = None) -> None:
    """Print the marker line followed by the JSON payload."""
    out = stream or sys.stdout
    if compact:
        text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    else:
        text = json.dumps(payload, indent=2, ensure_ascii=False)
    out.write(f"{marker}\n{text}\n")
    out.flush()


def extract_json_payload(output: str) -> dict[str, Any]:
    """
    Locate the JSON payload in mixed script output.

    The last top-level JSON object wins, so a payload printed after any
    number of log lines is found whether it was printed compact or indented.

    Raises:
        ValueError: If no JSON object is present.
    """
    decoder = json.JSONDecoder()
    lines = output.splitlines(keepends=True)
    offsets = []
    position = 0
    for line in lines:
        if line.lstrip().startswith("{"):
            offsets.append(position + len(line) - len(line.lstrip()))
        position += len(line)

    found: dict[str, Any] | None = None
    consumed = 0
    for offset in offsets:
        if offset < consumed:
            # nested line of an object already decoded
            continue
        try:
            payload, end = decoder.raw_decode(output, offset)
        except json.JSONDecodeError:
            continue
        if isinstance(payload, dict):
            found, consumed = payload, end
    if found is None:
        raise ValueError("No JSON payload found in output")
    return found
