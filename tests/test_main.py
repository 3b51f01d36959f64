# -*- coding: utf-8 -*-
"""
Module: test_main.py
Package: tests
Purpose: CLI phase selection, store lifecycle and exit codes
"""

# Standard library
from unittest.mock import patch

# Third-party
import pytest
from neo4j.exceptions import ServiceUnavailable
from pymongo.errors import ServerSelectionTimeoutError

# Local
from terraza_migration import main as cli
from terraza_migration.utils import constants as c


@pytest.fixture
def connected(store, graph):
    """Patch both store connections to return in-memory doubles."""
    with patch.object(cli.DocumentStore, "connect", return_value=store) as mongo_connect, \
            patch.object(cli.Neo4jGraphStore, "connect", return_value=graph) as neo4j_connect:
        yield mongo_connect, neo4j_connect


class TestPhaseSelection:

    def test_phase_range(self):
        assert cli.get_phases_to_run("normalize", "project") == ["normalize", "project"]
        assert cli.get_phases_to_run("load", "stats") == cli.PHASE_ORDER

    def test_reversed_range(self):
        with pytest.raises(ValueError, match="comes after"):
            cli.get_phases_to_run("stats", "load")

    def test_required_stores(self):
        assert cli.required_stores(["normalize", "stats"]) == {"mongo"}
        assert cli.required_stores(["project"]) == {"mongo", "neo4j"}

    def test_list_phases(self, capsys):
        assert cli.main(["--list-phases"]) == 0
        out = capsys.readouterr().out
        for code in cli.PHASE_ORDER:
            assert code in out

    def test_rules_option(self):
        args = cli.build_parser().parse_args(["--rules", "review, zones"])
        assert args.rules == ["review", "zones"]

    def test_export_option_default(self):
        parser = cli.build_parser()
        assert parser.parse_args([]).export is None
        assert parser.parse_args(["--export"]).export == cli.EXPORT_PATH / "terrazas.json"
        assert str(parser.parse_args(["--export", "out.jsonl"]).export) == "out.jsonl"


class TestMain:

    def test_reversed_range_exit_code(self, connected):
        assert cli.main(["-s", "stats", "-e", "load"]) == 1

    def test_only_needed_stores_connected(self, connected, store):
        mongo_connect, neo4j_connect = connected
        store.insert_many("Terrazas", [{c.NEIGHBORHOOD: "SOL", c.DISTRICT: "CENTRO"}])

        assert cli.main(["-s", "stats"]) == 0
        mongo_connect.assert_called_once()
        neo4j_connect.assert_not_called()

    def test_normalize_to_project(self, connected, store, graph, make_record):
        store.insert_many("Terrazas", [make_record(table_count=12), make_record(table_count=2)])

        assert cli.main(["-s", "normalize", "-e", "project"]) == 0

        inspected = store.find("Terrazas", {c.INSPECT: True})
        assert len(inspected) == 1
        assert graph.count_nodes(None)[c.TERRACE_LABEL] == 2
        assert graph.closed

    def test_selected_rules_only(self, connected, store, make_record):
        store.insert_many("Terrazas", [make_record(table_count=12)])

        assert cli.main(["-s", "normalize", "-e", "normalize", "--rules", "review"]) == 0

        doc = store.find("Terrazas")[0]
        assert c.REVIEW in doc
        assert c.INSPECT not in doc

    def test_load_missing_payload_is_not_fatal(self, connected, tmp_path):
        assert cli.main(["-e", "load", "--data-dir", str(tmp_path)]) == 0

    def test_mongo_connection_failure(self):
        with patch.object(cli.DocumentStore, "connect",
                          side_effect=ServerSelectionTimeoutError("no server")):
            assert cli.main(["-s", "stats"]) == 1

    def test_neo4j_failure_closes_mongo(self, store):
        with patch.object(cli.DocumentStore, "connect", return_value=store), \
                patch.object(cli.Neo4jGraphStore, "connect",
                             side_effect=ServiceUnavailable("down")), \
                patch.object(store, "close") as close:
            assert cli.main(["-s", "project", "-e", "project"]) == 1
        close.assert_called_once()

    def test_phase_exception_fails_run_and_closes(self, connected, store, graph):
        with patch.dict(cli.PHASE_RUNNERS, {"stats": lambda ctx: 1 / 0}), \
                patch.object(store, "close") as close:
            assert cli.main(["-s", "stats"]) == 1
        close.assert_called_once()
