# -*- coding: utf-8 -*-
"""
Shared fixtures for the terrace migration tests.

Document store tests run against mongomock; graph tests run against
InMemoryGraphStore, a dict-backed stand-in honouring the MERGE-by-key contract
of Neo4jGraphStore.
"""

# Standard library
import sys
from collections import Counter
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, List

# Project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Third-party
import mongomock
import pytest
from neo4j.exceptions import Neo4jError

# Local
from terraza_migration.utils import constants as c
from terraza_migration.utils.mongo_utils import DocumentStore


# ============================================================================
# GRAPH STORE DOUBLE
# ============================================================================

class InMemoryGraphStore:
    """Graph store double: nodes keyed by identity, relationships as a set."""

    def __init__(self, fail_records=()):
        self.nodes: Dict[tuple, Dict] = {}
        self.relationships = set()
        self.fail_records = set(fail_records)
        self.sessions_opened = 0
        self.sessions_closed = 0
        self.constraint_runs = 0
        self.closed = False

    @contextmanager
    def session(self):
        self.sessions_opened += 1
        try:
            yield object()
        finally:
            self.sessions_closed += 1

    def clear_database(self, session) -> int:
        count = len(self.nodes)
        self.nodes.clear()
        self.relationships.clear()
        return count

    def create_constraints(self, session):
        self.constraint_runs += 1

    def write_projection(self, session, projection):
        if projection.record_id in self.fail_records:
            raise Neo4jError(f"write failed for {projection.record_id}")
        for node in projection.nodes:
            entry = self.nodes.setdefault(node.identity, {"label": node.label, "props": {}})
            entry["props"].update(node.key)
            entry["props"].update(node.properties)
        for rel in projection.relationships:
            self.relationships.add((rel.rel_type, rel.source.identity, rel.target.identity))

    def count_nodes(self, session) -> Dict[str, int]:
        counts = Counter(entry["label"] for entry in self.nodes.values())
        return {label: counts.get(label, 0) for label in c.NODE_LABELS}

    def count_relationships(self, session) -> Dict[str, int]:
        counts = Counter(rel_type for rel_type, _, _ in self.relationships)
        return {rel_type: counts.get(rel_type, 0) for rel_type in c.RELATIONSHIP_TYPES}

    def sample_paths(self, session, limit: int = 5) -> List[Dict]:
        paths = []
        for rel_type, venue, terrace in sorted(self.relationships, key=str):
            if rel_type != c.HAS_TERRACE:
                continue
            neighborhood = next(s for t, s, v in self.relationships
                                if t == c.HAS_VENUE and v == venue)
            district = next(s for t, s, n in self.relationships
                            if t == c.CONTAINS and n == neighborhood)
            paths.append({
                "district": self.nodes[district]["props"]["name"],
                "neighborhood": self.nodes[neighborhood]["props"]["name"],
                "venue": self.nodes[venue]["props"]["id"],
                "terrace": self.nodes[terrace]["props"]["id"],
            })
            if len(paths) >= limit:
                break
        return paths

    def edges_from(self, rel_type: str, source_identity: tuple) -> int:
        return sum(1 for t, s, _ in self.relationships if t == rel_type and s == source_identity)

    def close(self):
        self.closed = True


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def mongo_client():
    """Fresh in-memory MongoDB client."""
    return mongomock.MongoClient()


@pytest.fixture
def store(mongo_client):
    """Document store bound to the Madrid database."""
    return DocumentStore(mongo_client, "Madrid")


@pytest.fixture
def make_graph():
    """Graph store double factory (e.g. make_graph(fail_records={"id"}))."""
    return InMemoryGraphStore


@pytest.fixture
def graph(make_graph):
    return make_graph()


@pytest.fixture
def make_record():
    """Factory for canonical terrace records with overridable fields."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        record = {
            c.LOCAL_ID: 10000 + n,
            c.TERRACE_ID: 20000 + n,
            c.DISTRICT: "CENTRO",
            c.DISTRICT_CODE: 1,
            c.NEIGHBORHOOD: "SOL",
            c.NEIGHBORHOOD_CODE: 106,
            c.STREET: "MAYOR",
            c.STREET_NUMBER: n,
            c.POSTAL_CODE: 28013,
            c.LOCATION_STATUS: "Open",
            c.TERRACE_STATUS: "Open",
            c.LOCATION_TYPE: "Sidewalk",
            c.ACCESS_TYPE: "Puerta Calle",
            c.TABLE_COUNT: 4,
            c.TABLE_COUNT_OFF_SEASON: 4,
            c.AUX_TABLES_SEASON: 0,
            c.AUX_TABLES_OFF_SEASON: 0,
            c.CHAIRS_SEASON: 16,
            c.CHAIRS_OFF_SEASON: 16,
            c.CLOSING_MON_THU_SEASON: "00:00:00",
            c.CLOSING_MON_THU_OFF_SEASON: "00:00:00",
            c.CLOSING_FRI_SAT_SEASON: "01:30:00",
            c.CLOSING_FRI_SAT_OFF_SEASON: "01:30:00",
        }
        record.update(overrides)
        return record

    return _make

