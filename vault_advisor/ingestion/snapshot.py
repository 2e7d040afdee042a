"""
Raw snapshot files — load vault records handed over by the ledger service.

The core never queries a ledger itself.  Records arrive as a JSON file in one
of three layouts, all reduced to a plain ``list[dict]``:

1. A bare array of raw records.
2. An envelope written by an export job::

       {"_meta": {"source": "...", "written_at": "..."}, "data": [ ... ]}

3. A raw ledger query response::

       {"data": {"deFindexVaults": {"nodes": [ ... ]}}}
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def extract_records(payload: Any) -> list[dict[str, Any]]:
    """Return the list of raw vault records contained in ``payload``.

    Raises:
        ValueError: If the payload matches none of the supported layouts.
    """
    if isinstance(payload, list):
        return payload

    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            # Ledger query response: data -> <collection> -> nodes
            for collection in data.values():
                if isinstance(collection, dict) and isinstance(collection.get("nodes"), list):
                    return collection["nodes"]

    raise ValueError(
        "Unrecognised snapshot layout: expected a list, an envelope with a "
        "'data' list, or a query response with 'data.<collection>.nodes'."
    )


def load_raw_records(path: Path) -> list[dict[str, Any]]:
    """Load raw vault records from a JSON file.

    Args:
        path: Path to the snapshot JSON file.

    Returns:
        List of raw record dicts (unvalidated).

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If the JSON layout is not recognised.
    """
    with open(path, encoding="utf-8") as f:
        payload = json.load(f)

    records = extract_records(payload)
    logger.debug("Loaded %d raw record(s) from %s", len(records), path)
    return records
