# -*- coding: utf-8 -*-
"""
Core data structures for the terrace migration pipeline

Single source of truth for the result and plan types exchanged between the
normalizer, the graph projector and the stats pass. Records themselves stay
plain dicts (they are documents); only derived artefacts get dataclasses.

Examples:
    from terraza_migration.utils.dataclasses import NodeMerge, RecordProjection

    district = NodeMerge(label="District", key={"name": "CENTRO"})
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


# ============================================================================
# INGESTION
# ============================================================================

@dataclass
class ImportResult:
    """Outcome of importing one payload file into one collection."""
    name: str
    database: str
    collection: str
    source: str
    inserted: int = 0
    skipped_lines: int = 0
    adapter: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ============================================================================
# NORMALIZER
# ============================================================================

@dataclass
class RuleResult:
    """Outcome of one rule (all of its bulk steps)."""
    name: str
    matched: int = 0
    modified: int = 0
    written: int = 0                        # documents written by view steps
    steps_run: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class NormalizationReport:
    """Per-rule results of one normalizer run, in execution order."""
    results: List[RuleResult] = field(default_factory=list)

    @property
    def failed(self) -> List[RuleResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failed

    def get(self, name: str) -> Optional[RuleResult]:
        for result in self.results:
            if result.name == name:
                return result
        return None


# ============================================================================
# GRAPH PROJECTION
# ============================================================================

@dataclass
class NodeMerge:
    """
    Upsert of one node, keyed by its natural identity.

    key holds the MERGE properties; properties are SET on every upsert
    (last write wins).
    """
    label: str
    key: Dict[str, Any]
    properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def identity(self) -> Tuple:
        return (self.label,) + tuple(sorted(self.key.items()))


@dataclass
class RelationshipMerge:
    """Upsert of one directed relationship between two merged nodes."""
    rel_type: str
    source: NodeMerge
    target: NodeMerge


@dataclass
class RecordProjection:
    """Graph writes for a single record: nodes first, then relationships."""
    record_id: str
    nodes: List[NodeMerge]
    relationships: List[RelationshipMerge]


@dataclass
class ProjectionReport:
    """Summary of one projection run."""
    records_read: int = 0
    projected: int = 0
    skipped_missing_identity: int = 0
    failed: int = 0
    deleted_nodes: int = 0
    node_counts: Dict[str, int] = field(default_factory=dict)
    relationship_counts: Dict[str, int] = field(default_factory=dict)
    sample_paths: List[Dict[str, Any]] = field(default_factory=list)


# ============================================================================
# STATS
# ============================================================================

@dataclass
class DistrictBreakdown:
    """Neighborhood distribution inside one district."""
    district: Optional[str]
    neighborhood_count: int
    neighborhoods: List[Dict[str, Any]]     # [{"neighborhood": ..., "count": ...}]


@dataclass
class NeighborhoodReport:
    """Distinct-neighborhood statistics with a sampling-bias check."""
    total_records: int
    distinct_neighborhoods: List[str]
    sample_size: int
    sample_neighborhoods: List[str]
    districts: List[DistrictBreakdown]

    @property
    def sample_coverage(self) -> float:
        """Share of all distinct neighborhoods that appear in the sample."""
        if not self.distinct_neighborhoods:
            return 0.0
        return len(self.sample_neighborhoods) / len(self.distinct_neighborhoods)
