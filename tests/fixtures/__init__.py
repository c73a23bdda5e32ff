"""Test fixtures and helpers for loading sample request payloads.

Example usage:
    from tests.fixtures import load_sample_payload, make_grid

    payload = load_sample_payload("orders.json")
    grid = make_grid([["Alice", 30], ["Bob", None]])
"""

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from excel_creator.excel_document import RawCell

# Base path to fixtures directory
FIXTURES_DIR = Path(__file__).parent
SAMPLE_PAYLOADS_DIR = FIXTURES_DIR / "sample_payloads"


def load_sample_payload(filename: str) -> dict[str, Any]:
    """Load a sample request body as a dictionary.

    Args:
        filename: Name of the file in the sample_payloads directory.

    Returns:
        The parsed JSON payload.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    filepath = SAMPLE_PAYLOADS_DIR / filename
    with open(filepath, encoding="utf-8") as f:
        return json.load(f)


def list_sample_payloads() -> list[str]:
    """List all available sample payloads.

    Returns:
        List of filenames in the sample_payloads directory.
    """
    if not SAMPLE_PAYLOADS_DIR.exists():
        return []
    return sorted(f.name for f in SAMPLE_PAYLOADS_DIR.iterdir() if f.is_file())


def make_grid(rows: Sequence[Sequence[Any]]) -> list[list[RawCell]]:
    """Build a data grid from plain JSON-like values."""
    return [[RawCell.from_json(value) for value in row] for row in rows]
