# -*- coding: utf-8 -*-
"""
Module: test_io.py
Package: tests.utils
Purpose: JSON / JSONL helpers used by the loader and the exporter
"""

# Standard library
import json
from datetime import datetime

# Third-party
from bson import ObjectId

# Local
from terraza_migration.utils.io import iter_jsonl, load_json, save_json, save_jsonl


class TestJson:

    def test_load_json_tolerates_bom(self, tmp_path):
        path = tmp_path / "payload.json"
        path.write_bytes('\ufeff[{"barrio": "SOL"}]'.encode("utf-8"))
        assert load_json(path) == [{"barrio": "SOL"}]

    def test_save_json_creates_parents_and_stringifies(self, tmp_path):
        oid = ObjectId()
        out = tmp_path / "a" / "b" / "export.json"

        save_json([{"_id": oid, "at": datetime(2024, 5, 1, 12, 0)}], out)

        assert json.loads(out.read_text(encoding="utf-8")) == [
            {"_id": str(oid), "at": "2024-05-01T12:00:00"},
        ]


class TestJsonl:

    def test_save_jsonl_accepts_iterators(self, tmp_path):
        out = tmp_path / "out" / "docs.jsonl"
        save_jsonl(({"n": i} for i in range(3)), out)

        assert [record for _, record in iter_jsonl(out)] == [{"n": 0}, {"n": 1}, {"n": 2}]

    def test_iter_jsonl_collects_errors(self, tmp_path):
        path = tmp_path / "docs.jsonl"
        path.write_text('{"n": 1}\nnot json\n\n{"n": 2}\n', encoding="utf-8")
        errors = []

        lines = [line_no for line_no, _ in iter_jsonl(path, errors=errors)]

        assert lines == [1, 4]
        assert [line_no for line_no, _ in errors] == [2]
