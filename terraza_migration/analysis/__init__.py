# -*- coding: utf-8 -*-
"""
Analysis package: read-only statistics over the terrace collection.
"""
from terraza_migration.analysis.neighborhood_stats import NeighborhoodStats

__all__ = ['NeighborhoodStats']
