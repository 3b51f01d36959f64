# -*- coding: utf-8 -*-
"""
Neo4j graph store for the District -> Neighborhood -> Venue -> Terrace hierarchy.

Connection management, schema constraints and per-record MERGE writes. Every
record is written in its own transaction (session.execute_write) so a failing
record does not roll back the others. Labels and relationship types come from
the fixed schema in utils.constants; all values are passed as parameters.

References:
    utils.constants: NODE_KEYS, NODE_LABELS, RELATIONSHIP_TYPES
    graph.graph_projector: builds the RecordProjection written here
"""

# Standard library
from typing import Any, Dict, List, Optional

# Third-party
from neo4j import GraphDatabase, Session

# Project imports
from terraza_migration.utils import constants as c
from terraza_migration.utils.config import CONNECT_TIMEOUT_MS
from terraza_migration.utils.dataclasses import RecordProjection
from terraza_migration.utils.logger import get_logger

logger = get_logger(__name__)

SAMPLE_PATH_QUERY = f"""
    MATCH (d:{c.DISTRICT_LABEL})-[:{c.CONTAINS}]->(n:{c.NEIGHBORHOOD_LABEL})
          -[:{c.HAS_VENUE}]->(v:{c.VENUE_LABEL})-[:{c.HAS_TERRACE}]->(t:{c.TERRACE_LABEL})
    RETURN d.name AS district, n.name AS neighborhood, v.id AS venue, t.id AS terrace
    LIMIT $limit
"""


def _key_pattern(alias: str, label: str, param: str) -> str:
    """'(n:Neighborhood {name: $key.name, district: $key.district})'"""
    fields = ", ".join(f"{name}: ${param}.{name}" for name in c.NODE_KEYS[label])
    return f"({alias}:{label} {{{fields}}})"


def node_merge_query(label: str) -> str:
    """Cypher upsert of one node: MERGE on its key, then overwrite properties."""
    return f"MERGE {_key_pattern('n', label, 'key')} SET n += $props"


def relationship_merge_query(rel_type: str, source_label: str, target_label: str) -> str:
    """Cypher upsert of one relationship between two existing nodes."""
    return (
        f"MATCH {_key_pattern('a', source_label, 'source')} "
        f"MATCH {_key_pattern('b', target_label, 'target')} "
        f"MERGE (a)-[:{rel_type}]->(b)"
    )


def constraint_query(label: str) -> str:
    """Uniqueness constraint over a node key (composite keys allowed)."""
    fields = c.NODE_KEYS[label]
    name = f"{label.lower()}_key"
    if len(fields) == 1:
        target = f"n.{fields[0]}"
    else:
        target = "(" + ", ".join(f"n.{f}" for f in fields) + ")"
    return f"CREATE CONSTRAINT {name} IF NOT EXISTS FOR (n:{label}) REQUIRE {target} IS UNIQUE"


def _write_projection_tx(tx, projection: RecordProjection):
    """
    Transaction function writing one record's nodes then relationships.

    Note:
        Call via session.execute_write(); the driver may retry it on
        transient errors, which is safe because every statement is a MERGE.
    """
    for node in projection.nodes:
        tx.run(node_merge_query(node.label), key=node.key, props=node.properties)

    for rel in projection.relationships:
        tx.run(
            relationship_merge_query(rel.rel_type, rel.source.label, rel.target.label),
            source=rel.source.key,
            target=rel.target.key,
        )


class Neo4jGraphStore:
    """
    Graph-store collaborator used by the projector.

    Example:
        graph = Neo4jGraphStore.connect(uri, user, password)
        with graph.session() as session:
            graph.clear_database(session)
            graph.write_projection(session, projection)
        graph.close()
    """

    def __init__(self, driver, database: Optional[str] = None):
        """
        Args:
            driver: neo4j Driver (or a test double)
            database: Target database name (None = server default)
        """
        self.driver = driver
        self.database = database

    @classmethod
    def connect(cls, uri: str, user: str, password: str,
                database: Optional[str] = None,
                timeout_ms: int = CONNECT_TIMEOUT_MS) -> "Neo4jGraphStore":
        """
        Open a driver and verify the server answers.

        Raises:
            neo4j.exceptions.ServiceUnavailable / AuthError: Server unreachable
        """
        driver = GraphDatabase.driver(
            uri, auth=(user, password), connection_timeout=timeout_ms / 1000
        )
        try:
            driver.verify_connectivity()
        except Exception:
            driver.close()
            raise
        logger.info(f"Connected to Neo4j at {uri}")
        return cls(driver, database)

    def close(self):
        """Close Neo4j driver connection."""
        self.driver.close()
        logger.info("Neo4j connection closed")

    def session(self) -> Session:
        if self.database:
            return self.driver.session(database=self.database)
        return self.driver.session()

    def clear_database(self, session: Session) -> int:
        """
        Remove all nodes and relationships.

        Returns:
            Number of nodes deleted
        """
        logger.warning("Clearing entire graph...")
        result = session.run("MATCH (n) DETACH DELETE n RETURN count(n) AS count")
        count = result.single()['count']
        logger.info(f"Deleted {count} nodes and all relationships")
        return count

    def create_constraints(self, session: Session):
        """Create one uniqueness constraint per node key."""
        for label in c.NODE_LABELS:
            query = constraint_query(label)
            session.run(query)
            logger.debug(f"Created: {query[:60]}...")
        logger.info(f"Created {len(c.NODE_LABELS)} constraints")

    def write_projection(self, session: Session, projection: RecordProjection):
        """Write one record in a single write transaction."""
        session.execute_write(_write_projection_tx, projection)

    def count_nodes(self, session: Session) -> Dict[str, int]:
        """Node counts by label."""
        counts = {}
        for label in c.NODE_LABELS:
            result = session.run(f"MATCH (n:{label}) RETURN count(n) AS count")
            counts[label] = result.single()['count']
        return counts

    def count_relationships(self, session: Session) -> Dict[str, int]:
        """Relationship counts by type."""
        counts = {}
        for rel_type in c.RELATIONSHIP_TYPES:
            result = session.run(f"MATCH ()-[r:{rel_type}]->() RETURN count(r) AS count")
            counts[rel_type] = result.single()['count']
        return counts

    def sample_paths(self, session: Session, limit: int = 5) -> List[Dict[str, Any]]:
        """A few full District -> Terrace paths, for eyeballing the result."""
        result = session.run(SAMPLE_PATH_QUERY, limit=limit)
        return [record.data() for record in result]
