# -*- coding: utf-8 -*-
"""
Read-only neighborhood statistics over the terrace collection.

Compares the distinct neighborhoods of the whole collection with those seen in
a bounded sample of the first records (a small sample is biased towards the
districts stored first), and groups terraces per (district, neighborhood) to
rank districts by how many neighborhoods they span.

Example:
    stats = NeighborhoodStats(store, "Terrazas")
    report = stats.build_report()
    stats.log_report(report)
"""

# Standard library
from typing import List, Optional

# Project imports
from terraza_migration.utils import constants as c
from terraza_migration.utils.config import REPORT_CONFIG, TERRACE_COLLECTION
from terraza_migration.utils.dataclasses import DistrictBreakdown, NeighborhoodReport
from terraza_migration.utils.logger import get_logger, log_section
from terraza_migration.utils.mongo_utils import DocumentStore

logger = get_logger(__name__)


class NeighborhoodStats:
    """Aggregation queries over the terrace collection. Never writes."""

    def __init__(self, store: DocumentStore, collection: str = TERRACE_COLLECTION):
        self.store = store
        self.collection = collection

    def distinct_neighborhoods(self) -> List[str]:
        """Sorted distinct neighborhood names across the collection."""
        values = self.store.distinct(self.collection, c.NEIGHBORHOOD)
        return sorted((v for v in values if v is not None), key=str)

    def sample_neighborhoods(self, sample_size: int = REPORT_CONFIG['sample_size']) -> List[str]:
        """Distinct neighborhoods among the first sample_size records, first-seen order."""
        seen = []
        for record in self.store.iter_documents(self.collection, limit=sample_size):
            name = record.get(c.NEIGHBORHOOD)
            if name is not None and name not in seen:
                seen.append(name)
        return seen

    def district_breakdown(self, top_n: int = REPORT_CONFIG['top_districts'],
                           per_district: int = REPORT_CONFIG['neighborhoods_per_district']
                           ) -> List[DistrictBreakdown]:
        """
        Districts ranked by number of distinct neighborhoods.

        Two-stage grouping: terrace count per (district, neighborhood), then
        neighborhood count per district. Each entry keeps the per_district
        neighborhoods with the most terraces.
        """
        pipeline = [
            {"$group": {
                "_id": {"district": f"${c.DISTRICT}", "neighborhood": f"${c.NEIGHBORHOOD}"},
                "count": {"$sum": 1},
            }},
            {"$group": {
                "_id": "$_id.district",
                "neighborhoods": {"$push": {"neighborhood": "$_id.neighborhood", "count": "$count"}},
                "neighborhood_count": {"$sum": 1},
            }},
            {"$sort": {"neighborhood_count": -1, "_id": 1}},
            {"$limit": top_n},
        ]

        breakdown = []
        for row in self.store.aggregate(self.collection, pipeline):
            neighborhoods = sorted(
                row["neighborhoods"],
                key=lambda n: (-n["count"], str(n.get("neighborhood"))),
            )
            breakdown.append(DistrictBreakdown(
                district=row["_id"],
                neighborhood_count=row["neighborhood_count"],
                neighborhoods=neighborhoods[:per_district],
            ))
        return breakdown

    def build_report(self, sample_size: Optional[int] = None) -> NeighborhoodReport:
        sample_size = sample_size or REPORT_CONFIG['sample_size']
        return NeighborhoodReport(
            total_records=self.store.count(self.collection),
            distinct_neighborhoods=self.distinct_neighborhoods(),
            sample_size=sample_size,
            sample_neighborhoods=self.sample_neighborhoods(sample_size),
            districts=self.district_breakdown(),
        )

    def log_report(self, report: NeighborhoodReport,
                   preview: int = REPORT_CONFIG['list_preview']):
        log_section(logger, "Neighborhood statistics")
        logger.info(f"Records: {report.total_records}")
        logger.info(f"Distinct neighborhoods (whole collection): {len(report.distinct_neighborhoods)}")
        for i, name in enumerate(report.distinct_neighborhoods[:preview], 1):
            logger.info(f"  {i}. {name}")

        logger.info(
            f"Distinct neighborhoods in first {report.sample_size} records: "
            f"{len(report.sample_neighborhoods)} ({report.sample_coverage:.1%} coverage)"
        )
        if report.distinct_neighborhoods and report.sample_coverage < 1.0:
            logger.warning("Sample does not cover every neighborhood; it is biased")

        logger.info("Districts by neighborhood count:")
        for entry in report.districts:
            logger.info(f"  {entry.district}: {entry.neighborhood_count} neighborhoods")
            for n in entry.neighborhoods:
                logger.info(f"    - {n['neighborhood']}: {n['count']} terraces")
