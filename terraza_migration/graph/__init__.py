# -*- coding: utf-8 -*-
"""
Graph package: projection of normalized records into Neo4j.
"""
from terraza_migration.graph.graph_projector import GraphProjector, build_projection
from terraza_migration.graph.neo4j_store import Neo4jGraphStore

__all__ = [
    'GraphProjector',
    'build_projection',
    'Neo4jGraphStore',
]
