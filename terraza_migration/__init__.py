# -*- coding: utf-8 -*-
"""
Terrace migration package.

Top-level package for the Madrid terrace permit migration: payload ingestion,
field normalization in MongoDB, Neo4j graph projection and neighborhood
statistics.
"""
__version__ = "1.0.0"
