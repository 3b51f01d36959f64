# -*- coding: utf-8 -*-
"""
Input adapters mapping source naming schemes onto the canonical record schema.

Two payload families exist for the same permits: the Madrid open-data export
(desc_distrito_local, mesas_es, sillas_ra, hora_fin_LJ_es, DESC_NOMBRE, ...) and
the CSV-converted legacy export (num_mesas, num_sillas, ubicacion_terraza,
situacion_terraza, desc_vial_edificio, ...). Both feed the one schema defined in
utils.constants, so every downstream stage reads a single set of field names.

Adapters only rename and translate vocabulary. They do NOT coerce capacity
strings or objects to numbers: that is the normalizer's job, and it must still
see those values.

Example:
    adapter = detect_adapter(raw_records)
    records = [adapter.adapt(r) for r in raw_records]
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from terraza_migration.normalization.field_values import clean_number
from terraza_migration.utils import constants as c
from terraza_migration.utils.logger import get_logger

logger = get_logger(__name__)

# Text fields used as natural keys; surrounding whitespace is dropped
KEY_TEXT_FIELDS = (c.DISTRICT, c.NEIGHBORHOOD, c.STREET)

LOCATION_TYPE_VALUES = {
    "Acera": "Sidewalk",
    "Calzada": "Roadway",
    "Bulevar": "Boulevard",
    "Plaza": "Square",
}

TERRACE_STATUS_VALUES = {
    "Abierta": "Open",
    "Cerrada": "Closed",
}

LOCATION_STATUS_VALUES = {
    "Abierto": "Open",
    "Cerrado": "Closed",
}


@dataclass
class RecordAdapter:
    """
    Field-name and vocabulary mapping for one payload family.

    field_sources maps each canonical field to candidate source names; the first
    candidate holding a non-null value wins. Source fields that are not mapped
    are carried through unchanged.
    """
    name: str
    field_sources: Dict[str, Tuple[str, ...]]
    value_maps: Dict[str, Dict[str, str]] = field(default_factory=dict)

    @property
    def source_fields(self) -> Set[str]:
        return {name for sources in self.field_sources.values() for name in sources}

    def score(self, records: Sequence[Dict]) -> int:
        """Number of (record, source field) hits, used for auto-detection."""
        known = self.source_fields
        return sum(1 for record in records for key in record if key in known)

    def adapt(self, record: Dict) -> Dict:
        """Return the record in canonical form (input is not mutated)."""
        adapted: Dict[str, Any] = {}
        consumed: Set[str] = set()

        for canonical, sources in self.field_sources.items():
            present = [s for s in sources if s in record]
            if not present:
                continue
            consumed.update(present)
            adapted[canonical] = next(
                (record[s] for s in present if record[s] is not None), None
            )

        for key, value in record.items():
            if key not in consumed and key not in adapted:
                adapted[key] = value

        for name in KEY_TEXT_FIELDS:
            if isinstance(adapted.get(name), str):
                adapted[name] = adapted[name].strip()

        for name, mapping in self.value_maps.items():
            value = adapted.get(name)
            if isinstance(value, str):
                adapted[name] = mapping.get(value.strip(), value)

        for name in c.NUMERIC_FIELDS:
            if name in adapted:
                adapted[name] = clean_number(adapted[name])

        return adapted


# ============================================================================
# ADAPTERS
# ============================================================================

_VALUE_MAPS = {
    c.LOCATION_TYPE: LOCATION_TYPE_VALUES,
    c.TERRACE_STATUS: TERRACE_STATUS_VALUES,
    c.LOCATION_STATUS: LOCATION_STATUS_VALUES,
}

OPEN_DATA_ADAPTER = RecordAdapter(
    name="open_data",
    field_sources={
        c.LOCAL_ID: ("id_local",),
        c.TERRACE_ID: ("id_terraza",),
        c.DISTRICT: ("desc_distrito_local",),
        c.DISTRICT_CODE: ("id_distrito_local",),
        c.NEIGHBORHOOD: ("desc_barrio_local",),
        c.NEIGHBORHOOD_CODE: ("id_barrio_local",),
        c.STREET: ("DESC_NOMBRE", "desc_vial_edificio"),
        c.STREET_NUMBER: ("num_edificio",),
        c.POSTAL_CODE: ("cod_postal",),
        c.LOCATION_STATUS: ("desc_situacion_local",),
        c.TERRACE_STATUS: ("desc_situacion_terraza",),
        c.LOCATION_TYPE: ("desc_ubicacion_terraza",),
        c.ACCESS_TYPE: ("desc_tipo_acceso_local",),
        c.TABLE_COUNT: ("mesas_es",),
        c.TABLE_COUNT_OFF_SEASON: ("mesas_ra",),
        c.AUX_TABLES_SEASON: ("mesas_aux_es",),
        c.AUX_TABLES_OFF_SEASON: ("mesas_aux_ra",),
        c.CHAIRS_SEASON: ("sillas_es",),
        c.CHAIRS_OFF_SEASON: ("sillas_ra",),
        c.CLOSING_MON_THU_SEASON: ("hora_fin_LJ_es",),
        c.CLOSING_MON_THU_OFF_SEASON: ("hora_fin_LJ_ra",),
        c.CLOSING_FRI_SAT_SEASON: ("hora_fin_VS_es",),
        c.CLOSING_FRI_SAT_OFF_SEASON: ("hora_fin_VS_ra",),
    },
    value_maps=_VALUE_MAPS,
)

LEGACY_EXPORT_ADAPTER = RecordAdapter(
    name="legacy_export",
    field_sources={
        c.LOCAL_ID: ("id_local",),
        c.TERRACE_ID: ("id_terraza",),
        c.DISTRICT: ("distrito", "desc_distrito_local"),
        c.NEIGHBORHOOD: ("barrio", "desc_barrio_local"),
        c.STREET: ("desc_vial_edificio",),
        c.STREET_NUMBER: ("num_edificio",),
        c.POSTAL_CODE: ("cod_postal",),
        c.LOCATION_STATUS: ("situacion_local",),
        c.TERRACE_STATUS: ("situacion_terraza",),
        c.LOCATION_TYPE: ("ubicacion_terraza",),
        c.ACCESS_TYPE: ("tipo_acceso_local",),
        c.TABLE_COUNT: ("num_mesas",),
        c.CHAIRS_SEASON: ("num_sillas",),
    },
    value_maps=_VALUE_MAPS,
)

ADAPTERS: List[RecordAdapter] = [OPEN_DATA_ADAPTER, LEGACY_EXPORT_ADAPTER]


def detect_adapter(records: Sequence[Dict], sample_size: int = 20,
                   adapters: Optional[List[RecordAdapter]] = None) -> RecordAdapter:
    """
    Pick the adapter whose source names best match the first records.

    Ties go to the earlier adapter in the list; with no matches at all the
    open-data adapter is used.
    """
    adapters = adapters or ADAPTERS
    sample = list(records[:sample_size])
    scores = [(adapter.score(sample), -i, adapter) for i, adapter in enumerate(adapters)]
    best_score, _, best = max(scores, key=lambda t: (t[0], t[1]))

    if best_score == 0:
        logger.warning("No known source fields found; defaulting to open_data adapter")
        return OPEN_DATA_ADAPTER

    logger.info(f"Detected '{best.name}' field naming (score {best_score})")
    return best


def adapt_records(records: Sequence[Dict],
                  adapter: Optional[RecordAdapter] = None) -> List[Dict]:
    """Adapt all records with the given (or detected) adapter."""
    if not records:
        return []
    adapter = adapter or detect_adapter(records)
    return [adapter.adapt(record) for record in records]
