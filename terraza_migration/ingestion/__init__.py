# -*- coding: utf-8 -*-
"""
Ingestion package: payload readers, input adapters and the dataset loader.
"""
from terraza_migration.ingestion.record_adapters import (
    LEGACY_EXPORT_ADAPTER,
    OPEN_DATA_ADAPTER,
    RecordAdapter,
    adapt_records,
    detect_adapter,
)
from terraza_migration.ingestion.dataset_loader import (
    DatasetLoader,
    load_csv_records,
    load_json_array,
    load_jsonl_records,
    strip_identifier_wrappers,
)

__all__ = [
    'LEGACY_EXPORT_ADAPTER',
    'OPEN_DATA_ADAPTER',
    'RecordAdapter',
    'adapt_records',
    'detect_adapter',
    'DatasetLoader',
    'load_csv_records',
    'load_json_array',
    'load_jsonl_records',
    'strip_identifier_wrappers',
]
