# -*- coding: utf-8 -*-
"""
Utilities package for common functionality across the migration pipeline.

Contains configuration, logging setup, I/O helpers, the MongoDB document store
handle, canonical field constants and the shared dataclasses.
"""
