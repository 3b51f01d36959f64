# terraza_migration/utils/config.py
"""
Configuration for the terrace migration pipeline.
Loads connection settings from .env, defines rule literals here.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# ============================================================================
# PROJECT PATHS
# ============================================================================
PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_PATH = Path(os.getenv('DATA_PATH', 'data/'))
if not DATA_PATH.is_absolute():
    DATA_PATH = PROJECT_ROOT / DATA_PATH

EXPORT_PATH = DATA_PATH / "export"

# ============================================================================
# CONNECTIONS (from .env)
# ============================================================================
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB = os.getenv("MONGO_DB", "Madrid")
TERRACE_COLLECTION = os.getenv("TERRACE_COLLECTION", "Terrazas")

NEO4J_URI = os.getenv("NEO4J_URI", "bolt://localhost:7687")
NEO4J_USER = os.getenv("NEO4J_USER", "neo4j")
NEO4J_PASSWORD = os.getenv("NEO4J_PASSWORD", "password")
NEO4J_DATABASE = os.getenv("NEO4J_DATABASE")  # None = server default

CONNECT_TIMEOUT_MS = int(os.getenv("CONNECT_TIMEOUT_MS", "5000"))

# Debug
DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() == "true"

# ============================================================================
# DATASETS (bulk import catalogue)
# ============================================================================
TERRACE_DATASET = {
    'file': 'act-grupal-openDataLocalesMadrid.JSON',
    'database': MONGO_DB,
    'collection': TERRACE_COLLECTION,
}

# Auxiliary classroom datasets, imported verbatim (no canonical adapter)
DATASETS = [
    {
        'name': 'city_inspections',
        'file': 'act-grupal-city_inspections.json',
        'format': 'jsonl',
        'database': 'inspections',
        'collection': 'city_inspections',
    },
    {
        'name': 'countries_small',
        'file': 'act-grupal-countries-small.json',
        'format': 'jsonl',
        'database': 'countries',
        'collection': 'countries_small',
    },
    {
        'name': 'countries_big',
        'file': 'act-grupal-countries-big.json',
        'format': 'jsonl',
        'database': 'countries',
        'collection': 'countries_big',
    },
]

# ============================================================================
# NORMALIZER (rule literals)
# ============================================================================
NORMALIZER_CONFIG = {
    # Rule 1: closure
    'closure_district': "SALAMANCA",
    'closure_neighborhood': "GUINDALERA",
    'closed_status': "Closed",

    # Rule 2: inspection flag
    'sidewalk_value': "Sidewalk",
    'inspect_table_threshold': 10,      # strictly greater -> inspect

    # Rule 3: capacity increment
    'aux_table_increment': 2,
    'chair_increment': 8,

    # Rule 4: status code bands (inclusive middle band)
    'status_low_limit': 10,
    'status_high_limit': 20,

    # Rule 5 / 6: closing times
    'midnight': "00:00:00",
    'fri_sat_from': "2:30:00",          # literal, not zero-padded
    'fri_sat_to': "2:00:00",

    # Rule 7: street flag
    'inspection_street': "ALCALA",
    'street_flag_field': "inspect",     # or "requires_inspection"

    # Rule 8: review annotation
    'open_status': "Open",
    'review': {
        'next_inspection_in': 10,
        'score': 80,
        'comment': "separar las mesas",
    },

    # Rule 9: zone extraction
    'zone_a_district': "VILLAVERDE",
    'zone_a_collection': "zone_a",
    'zone_b_district': "SALAMANCA",
    'zone_b_neighborhood': "CASTELLANA",
    'zone_b_collection': "zone_b",
}

# ============================================================================
# PROJECTION / REPORTING
# ============================================================================
PROJECTION_CONFIG = {
    'record_limit': None,   # None = whole collection
    'sample_paths': 5,
}

REPORT_CONFIG = {
    'sample_size': 50,
    'top_districts': 5,
    'neighborhoods_per_district': 3,
    'list_preview': 10,
}
