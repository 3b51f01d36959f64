# -*- coding: utf-8 -*-
"""
Module: test_record_adapters.py
Package: tests.ingestion
Purpose: Mapping of both source naming schemes onto the canonical record schema
"""

# Standard library
import copy
import logging

# Local
from terraza_migration.ingestion.record_adapters import (
    LEGACY_EXPORT_ADAPTER,
    OPEN_DATA_ADAPTER,
    adapt_records,
    detect_adapter,
)
from terraza_migration.utils import constants as c


# ============================================================================
# FIXTURES
# ============================================================================

OPEN_DATA_RECORD = {
    "_id": "5f1a",
    "id_local": 270104,
    "id_terraza": 9301,
    "desc_distrito_local": "CENTRO ",
    "id_distrito_local": 1,
    "desc_barrio_local": " SOL",
    "id_barrio_local": 106,
    "DESC_NOMBRE": "MAYOR",
    "desc_vial_edificio": "CALLE MAYOR",
    "num_edificio": 12,
    "cod_postal": 28013,
    "desc_situacion_local": "Abierto",
    "desc_situacion_terraza": "Abierta",
    "desc_ubicacion_terraza": "Acera",
    "desc_tipo_acceso_local": "Puerta Calle",
    "mesas_es": 12.0,
    "mesas_ra": 6,
    "mesas_aux_es": "",
    "mesas_aux_ra": None,
    "sillas_es": "abc",
    "sillas_ra": {},
    "hora_fin_LJ_es": "00:30:00",
    "hora_fin_LJ_ra": "23:00:00",
    "hora_fin_VS_es": "2:30:00",
    "hora_fin_VS_ra": "02:30:00",
    "rotulo": "BAR EJEMPLO",
}

LEGACY_RECORD = {
    "id_local": 1,
    "id_terraza": 2,
    "distrito": "RETIRO",
    "barrio": "IBIZA",
    "desc_vial_edificio": "ALCALA",
    "num_edificio": 5,
    "cod_postal": 28009,
    "situacion_local": "Cerrado",
    "situacion_terraza": "Cerrada",
    "ubicacion_terraza": "Calzada",
    "tipo_acceso_local": "Puerta Calle",
    "num_mesas": 4,
    "num_sillas": 16,
}


# ============================================================================
# ADAPTERS
# ============================================================================

class TestOpenDataAdapter:

    def test_canonical_names(self):
        record = OPEN_DATA_ADAPTER.adapt(OPEN_DATA_RECORD)

        assert record[c.LOCAL_ID] == 270104
        assert record[c.TERRACE_ID] == 9301
        assert record[c.DISTRICT] == "CENTRO"
        assert record[c.NEIGHBORHOOD] == "SOL"
        assert record[c.STREET] == "MAYOR"
        assert record[c.CLOSING_FRI_SAT_SEASON] == "2:30:00"
        assert record[c.CLOSING_FRI_SAT_OFF_SEASON] == "02:30:00"
        assert "desc_distrito_local" not in record
        assert "desc_vial_edificio" not in record

    def test_vocabulary(self):
        record = OPEN_DATA_ADAPTER.adapt(OPEN_DATA_RECORD)

        assert record[c.LOCATION_TYPE] == "Sidewalk"
        assert record[c.TERRACE_STATUS] == "Open"
        assert record[c.LOCATION_STATUS] == "Open"

    def test_capacity_values_are_not_coerced(self):
        record = OPEN_DATA_ADAPTER.adapt(OPEN_DATA_RECORD)

        assert record[c.TABLE_COUNT] == 12 and isinstance(record[c.TABLE_COUNT], int)
        assert record[c.AUX_TABLES_SEASON] == ""
        assert record[c.AUX_TABLES_OFF_SEASON] is None
        assert record[c.CHAIRS_SEASON] == "abc"
        assert record[c.CHAIRS_OFF_SEASON] == {}

    def test_unmapped_fields_carried_through(self):
        record = OPEN_DATA_ADAPTER.adapt(OPEN_DATA_RECORD)

        assert record["_id"] == "5f1a"
        assert record["rotulo"] == "BAR EJEMPLO"

    def test_street_falls_back_when_first_source_is_null(self):
        raw = dict(OPEN_DATA_RECORD, DESC_NOMBRE=None)
        assert OPEN_DATA_ADAPTER.adapt(raw)[c.STREET] == "CALLE MAYOR"

    def test_input_not_mutated(self):
        raw = copy.deepcopy(OPEN_DATA_RECORD)
        OPEN_DATA_ADAPTER.adapt(raw)
        assert raw == OPEN_DATA_RECORD

    def test_canonical_record_passes_unchanged(self, make_record):
        record = make_record()
        assert OPEN_DATA_ADAPTER.adapt(record) == record


class TestLegacyExportAdapter:

    def test_canonical_names_and_vocabulary(self):
        record = LEGACY_EXPORT_ADAPTER.adapt(LEGACY_RECORD)

        assert record[c.DISTRICT] == "RETIRO"
        assert record[c.NEIGHBORHOOD] == "IBIZA"
        assert record[c.STREET] == "ALCALA"
        assert record[c.TABLE_COUNT] == 4
        assert record[c.CHAIRS_SEASON] == 16
        assert record[c.LOCATION_TYPE] == "Roadway"
        assert record[c.TERRACE_STATUS] == "Closed"
        assert record[c.LOCATION_STATUS] == "Closed"

    def test_unknown_vocabulary_kept(self):
        raw = dict(LEGACY_RECORD, ubicacion_terraza="Azotea")
        assert LEGACY_EXPORT_ADAPTER.adapt(raw)[c.LOCATION_TYPE] == "Azotea"


# ============================================================================
# DETECTION
# ============================================================================

class TestDetectAdapter:

    def test_open_data(self):
        assert detect_adapter([OPEN_DATA_RECORD]) is OPEN_DATA_ADAPTER

    def test_legacy(self):
        assert detect_adapter([LEGACY_RECORD, LEGACY_RECORD]) is LEGACY_EXPORT_ADAPTER

    def test_no_match_defaults_to_open_data(self, caplog):
        with caplog.at_level(logging.WARNING):
            adapter = detect_adapter([{"foo": 1}])
        assert adapter is OPEN_DATA_ADAPTER
        assert "defaulting" in caplog.text

    def test_adapt_records(self):
        records = adapt_records([LEGACY_RECORD])
        assert records[0][c.DISTRICT] == "RETIRO"
        assert adapt_records([]) == []
