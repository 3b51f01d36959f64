# -*- coding: utf-8 -*-
"""
Graph projector: terrace collection -> District/Neighborhood/Venue/Terrace graph.

The graph is cleared before every run and rebuilt from the current collection,
so two runs over the same snapshot give the same node and relationship counts.
Records missing any identity value (district, neighborhood, venue id, terrace id)
are skipped whole; a record whose write fails is logged and skipped, and the run
carries on with the next one.

Example:
    projector = GraphProjector(store, graph, "Terrazas")
    report = projector.run()
    print(report.node_counts)   # {'District': 21, 'Neighborhood': 128, ...}
"""

# Standard library
from typing import Any, Dict, Optional

# Third-party
from neo4j.exceptions import DriverError, Neo4jError
from tqdm import tqdm

# Project imports
from terraza_migration.utils import constants as c
from terraza_migration.utils.config import PROJECTION_CONFIG, TERRACE_COLLECTION
from terraza_migration.utils.dataclasses import (
    NodeMerge,
    ProjectionReport,
    RecordProjection,
    RelationshipMerge,
)
from terraza_migration.utils.logger import get_logger, log_section
from terraza_migration.utils.mongo_utils import DocumentStore

logger = get_logger(__name__)


def _identity_value(value: Any) -> Any:
    """Identity value, or None when missing or blank."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _store_id(record: Dict) -> Optional[str]:
    value = record.get(c.STORE_ID)
    return None if value is None else str(value)


def build_projection(record: Dict) -> Optional[RecordProjection]:
    """
    Plan the graph writes for one record.

    Venue and terrace ids fall back to the stringified store id when the
    natural id is missing. Non-identity fields that are missing become None.

    Returns:
        RecordProjection, or None if an identity value is missing
    """
    district = _identity_value(record.get(c.DISTRICT))
    neighborhood = _identity_value(record.get(c.NEIGHBORHOOD))
    venue_id = _identity_value(record.get(c.LOCAL_ID))
    if venue_id is None:
        venue_id = _store_id(record)
    terrace_id = _identity_value(record.get(c.TERRACE_ID))
    if terrace_id is None:
        terrace_id = _store_id(record)

    if district is None or neighborhood is None or venue_id is None or terrace_id is None:
        return None

    district_node = NodeMerge(
        label=c.DISTRICT_LABEL,
        key={"name": district},
        properties={"code": record.get(c.DISTRICT_CODE)},
    )
    neighborhood_node = NodeMerge(
        label=c.NEIGHBORHOOD_LABEL,
        key={"name": neighborhood, "district": district},
        properties={"code": record.get(c.NEIGHBORHOOD_CODE)},
    )
    venue_node = NodeMerge(
        label=c.VENUE_LABEL,
        key={"id": venue_id},
        properties={
            "address": record.get(c.STREET),
            "number": record.get(c.STREET_NUMBER),
            "postal_code": record.get(c.POSTAL_CODE),
            "district": district,
            "neighborhood": neighborhood,
        },
    )
    terrace_node = NodeMerge(
        label=c.TERRACE_LABEL,
        key={"id": terrace_id},
        properties={
            "venue_id": venue_id,
            "access_type": record.get(c.ACCESS_TYPE),
            "inspect": record.get(c.INSPECT),
        },
    )

    return RecordProjection(
        record_id=_store_id(record) or str(terrace_id),
        nodes=[district_node, neighborhood_node, venue_node, terrace_node],
        relationships=[
            RelationshipMerge(c.CONTAINS, district_node, neighborhood_node),
            RelationshipMerge(c.HAS_VENUE, neighborhood_node, venue_node),
            RelationshipMerge(c.HAS_TERRACE, venue_node, terrace_node),
        ],
    )


class GraphProjector:
    """
    Clear-then-rebuild projection of one collection into the graph store.

    Handles:
    - Session scoping around the whole run
    - Constraint creation before the first write
    - Skip accounting (missing identity, failed writes)
    """

    def __init__(self, documents: DocumentStore, graph, collection: str = TERRACE_COLLECTION,
                 sample_paths: int = PROJECTION_CONFIG['sample_paths']):
        """
        Args:
            documents: Document store holding the normalized records
            graph: Graph store (Neo4jGraphStore or a test double)
            collection: Terrace collection name
            sample_paths: Number of full paths to include in the report
        """
        self.documents = documents
        self.graph = graph
        self.collection = collection
        self.sample_size = sample_paths

    def run(self, limit: Optional[int] = PROJECTION_CONFIG['record_limit']) -> ProjectionReport:
        """
        Rebuild the graph from the collection.

        Args:
            limit: Maximum number of records to project (None = all)

        Returns:
            ProjectionReport
        """
        log_section(logger, f"Projecting {self.collection} into graph")
        report = ProjectionReport()
        total = self.documents.count(self.collection)
        if limit:
            total = min(total, limit)

        with self.graph.session() as session:
            report.deleted_nodes = self.graph.clear_database(session)
            self.graph.create_constraints(session)

            records = self.documents.iter_documents(self.collection, limit=limit or 0)
            for record in tqdm(records, total=total, desc="Projecting records"):
                report.records_read += 1
                projection = build_projection(record)
                if projection is None:
                    report.skipped_missing_identity += 1
                    logger.debug(f"Skipping record {_store_id(record)}: missing identity field")
                    continue

                try:
                    self.graph.write_projection(session, projection)
                except (Neo4jError, DriverError) as e:
                    report.failed += 1
                    logger.error(f"Failed to write record {projection.record_id}: {e}")
                    continue
                report.projected += 1

            report.node_counts = self.graph.count_nodes(session)
            report.relationship_counts = self.graph.count_relationships(session)
            report.sample_paths = self.graph.sample_paths(session, self.sample_size)

        self._log_report(report)
        return report

    def _log_report(self, report: ProjectionReport):
        logger.info(
            f"Records read: {report.records_read}, projected: {report.projected}, "
            f"failed: {report.failed}"
        )
        if report.skipped_missing_identity:
            logger.warning(
                f"Skipped {report.skipped_missing_identity} records missing "
                f"district, neighborhood, venue id or terrace id"
            )
        for label, count in report.node_counts.items():
            logger.info(f"  {label:<14} {count:>7,} nodes")
        for rel_type, count in report.relationship_counts.items():
            logger.info(f"  {rel_type:<14} {count:>7,} relationships")
        for path in report.sample_paths:
            logger.info(
                f"  {path['district']} -> {path['neighborhood']} -> "
                f"{path['venue']} -> {path['terrace']}"
            )
