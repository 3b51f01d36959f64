# -*- coding: utf-8 -*-
"""
Bulk import and export of the classroom datasets.

Loads the terrace payload (JSON array, JSONL or semicolon CSV) into the terrace
collection in canonical form, and the auxiliary JSONL datasets (city inspections,
countries) verbatim into their own databases. Every import replaces the target
collection contents. Extended-JSON identifier wrappers ({"$oid": "..."}) are
flattened on the way in; a JSONL line that does not parse is skipped and counted.

Examples:
    loader = DatasetLoader(store, data_dir=Path("data"))
    loader.import_terraces()                 # data/act-grupal-openDataLocalesMadrid.JSON
    loader.import_all()                      # auxiliary datasets from DATASETS
    loader.export_collection("city_inspections", Path("data/export/inspections.json"),
                             database="inspections")

References:
    DATASETS / TERRACE_DATASET in utils.config
    record_adapters: canonical schema mapping
"""
# Standard library
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

# Third-party
import pandas as pd
from pymongo.errors import PyMongoError

# Project imports
from terraza_migration.ingestion.record_adapters import (
    RecordAdapter,
    detect_adapter,
)
from terraza_migration.utils.config import DATA_PATH, DATASETS, TERRACE_DATASET
from terraza_migration.utils.dataclasses import ImportResult
from terraza_migration.utils.io import iter_jsonl, load_json, save_json, save_jsonl
from terraza_migration.utils.logger import get_logger, log_section
from terraza_migration.utils.mongo_utils import DocumentStore

logger = get_logger(__name__)

IDENTIFIER_WRAPPER = "$oid"


# ============================================================================
# PAYLOAD READERS
# ============================================================================

def strip_identifier_wrappers(obj: Any, wrapper_key: str = IDENTIFIER_WRAPPER) -> Any:
    """
    Flatten identifier wrappers recursively: {"$oid": "abc"} -> "abc".

    Only single-key wrapper objects are flattened; other dicts and lists are
    walked and rebuilt.
    """
    if isinstance(obj, dict):
        if len(obj) == 1 and wrapper_key in obj:
            return obj[wrapper_key]
        return {key: strip_identifier_wrappers(value, wrapper_key) for key, value in obj.items()}
    if isinstance(obj, list):
        return [strip_identifier_wrappers(item, wrapper_key) for item in obj]
    return obj


def load_jsonl_records(path: Union[str, Path]) -> Tuple[List[Dict], int]:
    """
    Load a JSONL payload.

    Returns:
        (records, skipped_line_count)
    """
    errors: List[Tuple[int, str]] = []
    records = [record for _, record in iter_jsonl(path, errors=errors)]
    if errors:
        logger.warning(f"{Path(path).name}: skipped {len(errors)} malformed lines")
    logger.info(f"Loaded {len(records)} records from {path}")
    return records, len(errors)


def load_json_array(path: Union[str, Path]) -> List[Dict]:
    """
    Load a payload holding a single JSON array.

    Raises:
        ValueError: Top-level value is not an array
    """
    data = load_json(path)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array, got {type(data).__name__}")
    return data


def load_csv_records(path: Union[str, Path], sep: str = ";",
                     encoding: str = "utf-8-sig") -> List[Dict]:
    """
    Load a tabular export (the open-data portal publishes ';'-separated CSV).

    Empty cells become None; numeric columns keep pandas' inferred types and
    are tidied later by the record adapter.
    """
    df = pd.read_csv(path, sep=sep, encoding=encoding, low_memory=False)
    df = df.astype(object).where(pd.notna(df), None)
    records = df.to_dict(orient="records")
    logger.info(f"Loaded {len(records)} rows from {path}")
    return records


def sniff_format(path: Union[str, Path]) -> str:
    """'csv', 'jsonl' or 'json' (array) from suffix, then first character."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return "csv"
    if suffix == ".jsonl":
        return "jsonl"

    with open(path, 'r', encoding='utf-8-sig') as f:
        for line in f:
            stripped = line.lstrip()
            if stripped:
                return "json" if stripped.startswith("[") else "jsonl"
    return "json"


def load_payload(path: Union[str, Path], fmt: Optional[str] = None) -> Tuple[List[Dict], int]:
    """
    Load any supported payload and flatten identifier wrappers.

    Returns:
        (records, skipped_line_count)
    """
    fmt = fmt or sniff_format(path)
    skipped = 0
    if fmt == "jsonl":
        records, skipped = load_jsonl_records(path)
    elif fmt == "json":
        records = load_json_array(path)
    elif fmt == "csv":
        records = load_csv_records(path)
    else:
        raise ValueError(f"Unsupported payload format: {fmt}")
    return [strip_identifier_wrappers(record) for record in records], skipped


# ============================================================================
# LOADER
# ============================================================================

class DatasetLoader:
    """
    Imports payload files into the document store (replace semantics).

    Example:
        loader = DatasetLoader(store)
        result = loader.import_terraces()
        print(result.inserted, result.skipped_lines)
    """

    def __init__(self, store: DocumentStore, data_dir: Path = DATA_PATH):
        """
        Args:
            store: Document store handle (its database receives the terraces)
            data_dir: Directory holding the payload files
        """
        self.store = store
        self.data_dir = Path(data_dir)

    def _resolve(self, file_name: Union[str, Path]) -> Path:
        path = Path(file_name)
        return path if path.is_absolute() else self.data_dir / path

    def import_terraces(self, path: Optional[Union[str, Path]] = None,
                        collection: Optional[str] = None,
                        adapter: Optional[RecordAdapter] = None) -> ImportResult:
        """
        Load the terrace payload in canonical form into the terrace collection.

        Args:
            path: Payload path (default: TERRACE_DATASET file under data_dir)
            collection: Target collection (default: TERRACE_DATASET collection)
            adapter: Field naming adapter (default: auto-detected)
        """
        log_section(logger, "Terrace import")
        source = self._resolve(path or TERRACE_DATASET['file'])
        result = ImportResult(
            name="terraces",
            database=self.store.db_name,
            collection=collection or TERRACE_DATASET['collection'],
            source=str(source),
        )
        if not source.exists():
            result.error = "payload not found"
            logger.warning(f"Terrace payload not found: {source}")
            return result

        records, result.skipped_lines = load_payload(source)
        if records:
            adapter = adapter or detect_adapter(records)
            result.adapter = adapter.name
            records = [adapter.adapt(record) for record in records]

        return self._replace(self.store, records, result)

    def import_dataset(self, dataset: Dict) -> ImportResult:
        """
        Import one auxiliary dataset verbatim.

        Args:
            dataset: Entry shaped like utils.config.DATASETS items
        """
        source = self._resolve(dataset['file'])
        result = ImportResult(
            name=dataset['name'],
            database=dataset['database'],
            collection=dataset['collection'],
            source=str(source),
        )
        if not source.exists():
            result.error = "payload not found"
            logger.warning(f"{dataset['name']}: payload not found ({source})")
            return result

        records, result.skipped_lines = load_payload(source, dataset.get('format'))
        store = self.store.with_database(dataset['database'])
        return self._replace(store, records, result)

    def import_all(self, datasets: Optional[List[Dict]] = None) -> List[ImportResult]:
        """Import every auxiliary dataset; failures do not stop the others."""
        log_section(logger, "Auxiliary dataset import")
        return [self.import_dataset(dataset) for dataset in (datasets or DATASETS)]

    def export_collection(self, collection: str, path: Union[str, Path],
                          database: Optional[str] = None) -> int:
        """
        Write a collection to a JSON array file, or to JSONL when the path
        ends in .jsonl (store ids as strings).

        Returns:
            Number of exported documents
        """
        store = self.store.with_database(database) if database else self.store
        documents = store.find(collection)
        if Path(path).suffix.lower() == ".jsonl":
            save_jsonl(documents, path)
        else:
            save_json(documents, path)
        logger.info(f"Exported {len(documents)} documents from {store.db_name}.{collection}")
        return len(documents)

    def _replace(self, store: DocumentStore, records: List[Dict],
                 result: ImportResult) -> ImportResult:
        try:
            result.inserted = store.replace_collection(result.collection, records)
        except PyMongoError as e:
            result.error = str(e)
            logger.error(f"{result.name}: import into {result.database}.{result.collection} failed: {e}")
            return result

        logger.info(
            f"{result.name}: inserted {result.inserted} documents into "
            f"{result.database}.{result.collection}"
            + (f" ({result.skipped_lines} lines skipped)" if result.skipped_lines else "")
        )
        return result
