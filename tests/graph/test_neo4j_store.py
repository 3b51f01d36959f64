# -*- coding: utf-8 -*-
"""
Module: test_neo4j_store.py
Package: tests.graph
Purpose: Cypher generation and driver usage of Neo4jGraphStore (mocked driver)
"""

# Standard library
from unittest.mock import MagicMock, patch

# Third-party
import pytest
from neo4j.exceptions import ServiceUnavailable

# Local
from terraza_migration.graph.graph_projector import build_projection
from terraza_migration.graph.neo4j_store import (
    Neo4jGraphStore,
    _write_projection_tx,
    constraint_query,
    node_merge_query,
    relationship_merge_query,
)
from terraza_migration.utils import constants as c


# ============================================================================
# QUERIES
# ============================================================================

class TestQueries:

    def test_node_merge_on_key(self):
        assert node_merge_query(c.DISTRICT_LABEL) == (
            "MERGE (n:District {name: $key.name}) SET n += $props"
        )

    def test_neighborhood_merge_is_composite(self):
        assert node_merge_query(c.NEIGHBORHOOD_LABEL) == (
            "MERGE (n:Neighborhood {name: $key.name, district: $key.district}) SET n += $props"
        )

    def test_relationship_merge(self):
        query = relationship_merge_query(c.HAS_VENUE, c.NEIGHBORHOOD_LABEL, c.VENUE_LABEL)
        assert query == (
            "MATCH (a:Neighborhood {name: $source.name, district: $source.district}) "
            "MATCH (b:Venue {id: $target.id}) "
            "MERGE (a)-[:HAS_VENUE]->(b)"
        )

    def test_constraints(self):
        assert constraint_query(c.VENUE_LABEL) == (
            "CREATE CONSTRAINT venue_key IF NOT EXISTS FOR (n:Venue) REQUIRE n.id IS UNIQUE"
        )
        assert constraint_query(c.NEIGHBORHOOD_LABEL) == (
            "CREATE CONSTRAINT neighborhood_key IF NOT EXISTS FOR (n:Neighborhood) "
            "REQUIRE (n.name, n.district) IS UNIQUE"
        )


# ============================================================================
# STORE
# ============================================================================

@pytest.fixture
def session():
    session = MagicMock()
    session.run.return_value.single.return_value = {"count": 3}
    return session


@pytest.fixture
def driver(session):
    driver = MagicMock()
    driver.session.return_value = session
    return driver


class TestNeo4jGraphStore:

    def test_transaction_writes_nodes_then_relationships(self, make_record):
        projection = build_projection(make_record(local_id=1, terrace_id=2))
        tx = MagicMock()

        _write_projection_tx(tx, projection)

        queries = [call.args[0] for call in tx.run.call_args_list]
        assert len(queries) == 7
        assert all(q.startswith("MERGE (n:") for q in queries[:4])
        assert all(q.startswith("MATCH") for q in queries[4:])
        first = tx.run.call_args_list[0]
        assert first.kwargs == {"key": {"name": "CENTRO"}, "props": {"code": 1}}

    def test_write_projection_uses_one_write_transaction(self, driver, session, make_record):
        projection = build_projection(make_record())
        Neo4jGraphStore(driver).write_projection(session, projection)

        session.execute_write.assert_called_once_with(_write_projection_tx, projection)

    def test_clear_database(self, driver, session):
        deleted = Neo4jGraphStore(driver).clear_database(session)

        assert deleted == 3
        assert "DETACH DELETE" in session.run.call_args.args[0]

    def test_create_constraints_one_per_label(self, driver, session):
        Neo4jGraphStore(driver).create_constraints(session)
        assert session.run.call_count == len(c.NODE_LABELS)

    def test_counts(self, driver, session):
        graph = Neo4jGraphStore(driver)
        assert graph.count_nodes(session) == {label: 3 for label in c.NODE_LABELS}
        assert graph.count_relationships(session) == {t: 3 for t in c.RELATIONSHIP_TYPES}

    def test_session_database(self, driver):
        Neo4jGraphStore(driver, database="terrazas").session()
        driver.session.assert_called_once_with(database="terrazas")

    @patch("terraza_migration.graph.neo4j_store.GraphDatabase")
    def test_connect_closes_driver_on_failure(self, graph_database):
        driver = graph_database.driver.return_value
        driver.verify_connectivity.side_effect = ServiceUnavailable("down")

        with pytest.raises(ServiceUnavailable):
            Neo4jGraphStore.connect("bolt://nowhere:7687", "neo4j", "secret")
        driver.close.assert_called_once()

    @patch("terraza_migration.graph.neo4j_store.GraphDatabase")
    def test_connect(self, graph_database):
        graph = Neo4jGraphStore.connect("bolt://localhost:7687", "neo4j", "secret")

        assert graph.driver is graph_database.driver.return_value
        assert graph_database.driver.call_args.kwargs["auth"] == ("neo4j", "secret")
