"""
Tests for vault_advisor/ingestion/snapshot.py.

What we test
------------
extract_records():
  - Bare list, export envelope, and ledger query response all unwrap.
  - Unknown layouts raise ValueError.

load_raw_records():
  - Reads a JSON file from disk.
  - Missing file raises FileNotFoundError.
"""

from __future__ import annotations

import json

import pytest

from vault_advisor.ingestion.snapshot import extract_records, load_raw_records


class TestExtractRecords:
    def test_bare_list(self, reference_records):
        assert extract_records(reference_records) == reference_records

    def test_envelope(self, reference_records):
        payload = {"_meta": {"source": "ledger"}, "data": reference_records}
        assert extract_records(payload) == reference_records

    def test_query_response(self, reference_records):
        payload = {"data": {"deFindexVaults": {"nodes": reference_records}}}
        assert extract_records(payload) == reference_records

    @pytest.mark.parametrize("payload", [
        {"data": {"deFindexVaults": {"edges": []}}},
        {"records": []},
        "just a string",
        42,
    ])
    def test_unknown_layout_raises(self, payload):
        with pytest.raises(ValueError, match="Unrecognised snapshot layout"):
            extract_records(payload)


class TestLoadRawRecords:
    def test_reads_file(self, tmp_path, reference_records):
        path = tmp_path / "vaults.json"
        path.write_text(json.dumps({"_meta": {}, "data": reference_records}), encoding="utf-8")
        assert load_raw_records(path) == reference_records

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_raw_records(tmp_path / "absent.json")
