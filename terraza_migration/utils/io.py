# -*- coding: utf-8 -*-
"""
I/O utilities for dataset payloads and exports

Simple helpers for JSON and JSONL files with consistent encoding and logging.
JSONL reading is tolerant: a line that fails to parse is skipped and counted
instead of aborting the whole file.

Examples:
    from terraza_migration.utils.io import load_json, save_json, iter_jsonl
    terraces = load_json("data/act-grupal-openDataLocalesMadrid.JSON")
    save_json(terraces, "data/export/terrazas.json")

    for line_no, record in iter_jsonl("data/act-grupal-city_inspections.json"):
        ...

"""
import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)


# ============================================================================
# JSON (whole-file payloads and exports)
# ============================================================================

def load_json(path: Union[str, Path]) -> Any:
    """Parse a whole JSON payload (BOM tolerated, as in the open-data exports)."""
    path = Path(path)
    with open(path, 'r', encoding='utf-8-sig') as f:
        data = json.load(f)
    size = len(data) if isinstance(data, list) else 1
    logger.info(f"Loaded {size} documents from {path.name}")
    return data


def save_json(data: Any, path: Union[str, Path], indent: int = 2) -> str:
    """
    Write data as one JSON document. Store identifiers and datetimes are
    stringified on the way out.

    Returns:
        Path string
    """
    path = _writable(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent, ensure_ascii=False, default=_serialize)

    size = len(data) if isinstance(data, list) else 1
    logger.info(f"Exported {size} documents to {path}")
    return str(path)


# ============================================================================
# JSONL (one document per line)
# ============================================================================

def iter_jsonl(
    path: Union[str, Path],
    errors: Optional[List[Tuple[int, str]]] = None,
) -> Iterator[Tuple[int, Dict]]:
    """
    Stream a JSONL file, skipping lines that are not valid JSON.

    Args:
        path: Path to JSONL file
        errors: Optional list collecting (line_no, message) for skipped lines

    Yields:
        (line_no, record) tuples, line numbers 1-based
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8-sig') as f:
        for line_no, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(f"{path.name}:{line_no}: malformed line skipped ({e.msg})")
                if errors is not None:
                    errors.append((line_no, e.msg))
                continue
            yield line_no, record


def save_jsonl(records: Iterable[Dict], path: Union[str, Path]) -> str:
    """Write one document per line (same serialization as save_json)."""
    path = _writable(path)
    written = 0
    with open(path, 'w', encoding='utf-8') as f:
        for record in records:
            f.write(json.dumps(record, ensure_ascii=False, default=_serialize) + '\n')
            written += 1

    logger.info(f"Exported {written} documents to {path}")
    return str(path)


# ============================================================================
# HELPERS
# ============================================================================

def _serialize(obj: Any) -> Any:
    """Convert non-JSON-serializable objects (ObjectId, datetime)."""
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return str(obj)


def _writable(path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path
