# -*- coding: utf-8 -*-
"""
Shared constants for the terrace migration pipeline

Canonical record field names (the single schema every input adapter maps into),
grouped field tuples used by the normalizer, and the fixed graph schema
(labels, node keys, relationship types) used by the projector.

"""
from typing import Dict, List, Tuple


# ============================================================================
# CANONICAL RECORD FIELDS
# ============================================================================

STORE_ID = "_id"

# Identity
LOCAL_ID = "local_id"
TERRACE_ID = "terrace_id"

# Location
DISTRICT = "district"
DISTRICT_CODE = "district_code"
NEIGHBORHOOD = "neighborhood"
NEIGHBORHOOD_CODE = "neighborhood_code"
STREET = "street"
STREET_NUMBER = "street_number"
POSTAL_CODE = "postal_code"

# Status
LOCATION_STATUS = "location_status"
TERRACE_STATUS = "terrace_status"
LOCATION_TYPE = "location_type"
ACCESS_TYPE = "access_type"

# Capacity
TABLE_COUNT = "table_count"
TABLE_COUNT_OFF_SEASON = "table_count_off_season"
AUX_TABLES_SEASON = "aux_tables_season"
AUX_TABLES_OFF_SEASON = "aux_tables_off_season"
CHAIRS_SEASON = "chairs_season"
CHAIRS_OFF_SEASON = "chairs_off_season"

# Schedule (HH:MM:SS strings)
CLOSING_MON_THU_SEASON = "closing_mon_thu_season"
CLOSING_MON_THU_OFF_SEASON = "closing_mon_thu_off_season"
CLOSING_FRI_SAT_SEASON = "closing_fri_sat_season"
CLOSING_FRI_SAT_OFF_SEASON = "closing_fri_sat_off_season"

# Derived by the normalizer
INSPECT = "inspect"
REQUIRES_INSPECTION = "requires_inspection"
STATUS_CODE = "status_code"
REVIEW = "review"

# Fields coerced to integer zero before the capacity increment
CAPACITY_FIELDS: Tuple[str, ...] = (
    AUX_TABLES_OFF_SEASON,
    AUX_TABLES_SEASON,
    CHAIRS_OFF_SEASON,
    CHAIRS_SEASON,
)

# Fields an adapter converts from float to int when integral (CSV payloads)
NUMERIC_FIELDS: Tuple[str, ...] = (
    TABLE_COUNT,
    TABLE_COUNT_OFF_SEASON,
) + CAPACITY_FIELDS

MON_THU_CLOSING_FIELDS: Tuple[str, ...] = (
    CLOSING_MON_THU_SEASON,
    CLOSING_MON_THU_OFF_SEASON,
)

FRI_SAT_CLOSING_FIELDS: Tuple[str, ...] = (
    CLOSING_FRI_SAT_SEASON,
    CLOSING_FRI_SAT_OFF_SEASON,
)


# ============================================================================
# GRAPH SCHEMA
# ============================================================================

DISTRICT_LABEL = "District"
NEIGHBORHOOD_LABEL = "Neighborhood"
VENUE_LABEL = "Venue"
TERRACE_LABEL = "Terrace"

# Natural keys used by MERGE (composite for Neighborhood)
NODE_KEYS: Dict[str, Tuple[str, ...]] = {
    DISTRICT_LABEL: ("name",),
    NEIGHBORHOOD_LABEL: ("name", "district"),
    VENUE_LABEL: ("id",),
    TERRACE_LABEL: ("id",),
}

NODE_LABELS: List[str] = list(NODE_KEYS)

CONTAINS = "CONTAINS"
HAS_VENUE = "HAS_VENUE"
HAS_TERRACE = "HAS_TERRACE"

RELATIONSHIP_TYPES: List[str] = [CONTAINS, HAS_VENUE, HAS_TERRACE]
