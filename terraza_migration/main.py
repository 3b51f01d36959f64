# -*- coding: utf-8 -*-
"""
Terrace Migration Pipeline Orchestrator

Runs the Madrid terrace permit migration end to end: load the payloads into
MongoDB, normalize the terrace collection with the ordered field rules, project
it into the Neo4j District -> Neighborhood -> Venue -> Terrace graph, and print
neighborhood statistics. Any contiguous range of phases can be run; only the
stores the selected phases need are connected, and both are closed on exit.

Modes:
    --start-phase    First phase to execute (default: load)
    --end-phase      Last phase to execute (default: stats)
    --list-phases    Display all available phases and exit

Examples:
    # Full run
    terraza-migration

    # Normalize only, restricted to two rules
    terraza-migration -s normalize -e normalize --rules review,zones

    # Re-project the first 200 records and show stats
    terraza-migration -s project --limit 200

    # Load everything including the auxiliary datasets, then export
    terraza-migration -e load --import-all --export data/export/terrazas.json

Exit codes:
    0 success, 1 connection failure or failed phase
"""

# Standard library
import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Set

# Third-party
from neo4j.exceptions import DriverError, Neo4jError
from pymongo.errors import PyMongoError

# Project imports
from terraza_migration.analysis.neighborhood_stats import NeighborhoodStats
from terraza_migration.graph.graph_projector import GraphProjector
from terraza_migration.graph.neo4j_store import Neo4jGraphStore
from terraza_migration.ingestion.dataset_loader import DatasetLoader
from terraza_migration.normalization.rule_engine import FieldNormalizer
from terraza_migration.utils.config import (
    DATA_PATH,
    DEBUG_MODE,
    EXPORT_PATH,
    MONGO_DB,
    MONGO_URI,
    NEO4J_DATABASE,
    NEO4J_PASSWORD,
    NEO4J_URI,
    NEO4J_USER,
    TERRACE_COLLECTION,
)
from terraza_migration.utils.logger import get_logger, log_section, setup_logging
from terraza_migration.utils.mongo_utils import DocumentStore

logger = get_logger(__name__)

# Phase definitions in execution order
PHASES = [
    ("load", "Dataset Import"),
    ("normalize", "Field Normalization"),
    ("project", "Graph Projection"),
    ("stats", "Neighborhood Statistics"),
]

PHASE_ORDER = [p[0] for p in PHASES]
PHASE_NAMES = {p[0]: p[1] for p in PHASES}

# Stores each phase needs
PHASE_STORES: Dict[str, Set[str]] = {
    "load": {"mongo"},
    "normalize": {"mongo"},
    "project": {"mongo", "neo4j"},
    "stats": {"mongo"},
}

CONNECTION_ERRORS = (PyMongoError, Neo4jError, DriverError, ValueError)


class PipelineContext:
    """Store handles and CLI options shared by the phase runners."""

    def __init__(self, args: argparse.Namespace, store: Optional[DocumentStore] = None,
                 graph: Optional[Neo4jGraphStore] = None):
        self.args = args
        self.store = store
        self.graph = graph

    def close(self):
        try:
            if self.graph is not None:
                self.graph.close()
        finally:
            if self.store is not None:
                self.store.close()


# ============================================================================
# PHASE RUNNERS
# ============================================================================

def run_load(ctx: PipelineContext) -> bool:
    """
    Phase load: Dataset Import

    Replaces the terrace collection with the canonical form of the terrace
    payload; with --import-all also loads the auxiliary datasets.
    """
    loader = DatasetLoader(ctx.store, data_dir=ctx.args.data_dir)
    result = loader.import_terraces(collection=ctx.args.collection)
    if result.error == "payload not found":
        logger.warning("Terrace collection left untouched")
    elif not result.ok:
        return False

    if ctx.args.import_all:
        failed = [r.name for r in loader.import_all() if r.error and r.error != "payload not found"]
        if failed:
            logger.error(f"Auxiliary imports failed: {', '.join(failed)}")
            return False

    if ctx.args.export:
        loader.export_collection(ctx.args.collection, ctx.args.export)
    return True


def run_normalize(ctx: PipelineContext) -> bool:
    """
    Phase normalize: Field Normalization

    Rule failures are logged by the normalizer and do not fail the phase.
    """
    normalizer = FieldNormalizer(ctx.store, ctx.args.collection)
    normalizer.run(only=ctx.args.rules)
    return True


def run_project(ctx: PipelineContext) -> bool:
    """Phase project: Graph Projection (clear, then rebuild)."""
    projector = GraphProjector(ctx.store, ctx.graph, ctx.args.collection)
    projector.run(limit=ctx.args.limit)
    return True


def run_stats(ctx: PipelineContext) -> bool:
    """Phase stats: Neighborhood Statistics (read-only)."""
    stats = NeighborhoodStats(ctx.store, ctx.args.collection)
    stats.log_report(stats.build_report())
    return True


# Phase runner dispatch
PHASE_RUNNERS = {
    "load": run_load,
    "normalize": run_normalize,
    "project": run_project,
    "stats": run_stats,
}


def get_phases_to_run(start: str, end: str) -> List[str]:
    """Get list of phases between start and end (inclusive)."""
    try:
        start_idx = PHASE_ORDER.index(start)
        end_idx = PHASE_ORDER.index(end)
    except ValueError as e:
        raise ValueError(f"Invalid phase: {e}. Valid phases: {PHASE_ORDER}")

    if start_idx > end_idx:
        raise ValueError(f"Start phase {start} comes after end phase {end}")

    return PHASE_ORDER[start_idx:end_idx + 1]


def required_stores(phases: List[str]) -> Set[str]:
    return set().union(*(PHASE_STORES[p] for p in phases))


def connect_stores(ctx: PipelineContext, stores: Set[str]):
    """
    Connect the requested stores onto ctx.

    Raises:
        PyMongoError / Neo4jError / DriverError: Store unreachable
    """
    if "mongo" in stores:
        ctx.store = DocumentStore.connect(MONGO_URI, MONGO_DB)
    if "neo4j" in stores:
        ctx.graph = Neo4jGraphStore.connect(NEO4J_URI, NEO4J_USER, NEO4J_PASSWORD, NEO4J_DATABASE)


def run_pipeline(ctx: PipelineContext, phases: List[str]) -> bool:
    """
    Run the given phases in order on connected stores.

    Returns:
        True if all phases completed successfully
    """
    log_section(logger, "TERRACE MIGRATION PIPELINE")
    logger.info(f"Phases: {phases[0]} -> {phases[-1]}")
    logger.info(f"Started: {datetime.now().isoformat()}")

    for phase in phases:
        phase_name = PHASE_NAMES[phase]
        logger.info(f">>> Starting {phase}: {phase_name}")
        try:
            success = PHASE_RUNNERS[phase](ctx)
        except Exception as e:
            logger.exception(f"Phase {phase} raised exception: {e}")
            return False
        if not success:
            logger.error(f"Phase {phase} failed")
            return False
        logger.info(f"<<< Completed {phase}: {phase_name}")

    log_section(logger, "PIPELINE COMPLETE")
    logger.info(f"Finished: {datetime.now().isoformat()}")
    return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="terraza-migration",
        description="Migrate Madrid terrace permits from MongoDB into a Neo4j graph",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Phases: " + ", ".join(f"{k} ({v})" for k, v in PHASES),
    )
    parser.add_argument("-s", "--start-phase", default=PHASE_ORDER[0], choices=PHASE_ORDER,
                        help="First phase to execute (default: %(default)s)")
    parser.add_argument("-e", "--end-phase", default=PHASE_ORDER[-1], choices=PHASE_ORDER,
                        help="Last phase to execute (default: %(default)s)")
    parser.add_argument("--list-phases", action="store_true",
                        help="Display all available phases and exit")
    parser.add_argument("--rules", type=lambda s: [r.strip() for r in s.split(",") if r.strip()],
                        default=None, help="Comma-separated normalizer rules to run")
    parser.add_argument("--collection", default=TERRACE_COLLECTION,
                        help="Terrace collection (default: %(default)s)")
    parser.add_argument("--data-dir", type=Path, default=DATA_PATH,
                        help="Directory holding the payload files")
    parser.add_argument("--limit", type=int, default=None,
                        help="Maximum number of records to project")
    parser.add_argument("--import-all", action="store_true",
                        help="Also import the auxiliary datasets during load")
    parser.add_argument("--export", type=Path, nargs="?", default=None,
                        const=EXPORT_PATH / "terrazas.json",
                        help="Export the terrace collection after load (.json or .jsonl; "
                             "default: %(const)s)")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.list_phases:
        print("Available phases:")
        for code, name in PHASES:
            print(f"  {code:<10} {name}")
        return 0

    setup_logging(
        level=logging.DEBUG if (args.verbose or DEBUG_MODE) else logging.INFO,
        log_file=args.log_file,
    )

    try:
        phases = get_phases_to_run(args.start_phase, args.end_phase)
    except ValueError as e:
        logger.error(str(e))
        return 1

    ctx = PipelineContext(args)
    try:
        try:
            connect_stores(ctx, required_stores(phases))
        except CONNECTION_ERRORS as e:
            logger.error(f"Connection failed: {e}")
            logger.error("Hint: check MONGO_URI / NEO4J_URI and credentials in .env")
            return 1
        success = run_pipeline(ctx, phases)
    finally:
        ctx.close()

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
