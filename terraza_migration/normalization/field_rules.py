# -*- coding: utf-8 -*-
"""
Ordered rule set applied to the terrace collection.

Each FieldRule is a list of bulk steps; a step is either a conditional update
(filter -> update document) or a materialized view (filter -> target collection).
Rule order matters and is fixed by build_rules(): later rules read fields that
earlier rules derive (inspect, status_code), and the capacity increment must see
the whole collection already zero-normalized.

Rules:
    1. closure           Close every venue of one district/neighborhood
    2. inspection_flag   Sidewalk terraces: inspect = table_count > threshold
    3. capacity          Non-negative int capacity, then +2 aux tables / +8 chairs
    4. status_code       Non-inspected terraces: 1 / 2 / 3 by seasonal chairs
    5. mon_thu_cap       Mon-Thu closing times capped at midnight
    6. fri_sat_schedule  Fri-Sat "2:30:00" -> "2:00:00" (exact string)
    7. street_flag       Target street (case-insensitive) flagged for inspection
    8. review            Open terraces get a fixed review sub-record
    9. zones             Zone A / Zone B full-overwrite collections

Only rule 3 is not idempotent: each run adds the increments again.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from terraza_migration.normalization.field_values import non_numeric_filter
from terraza_migration.utils.config import NORMALIZER_CONFIG
from terraza_migration.utils.constants import (
    AUX_TABLES_OFF_SEASON,
    AUX_TABLES_SEASON,
    CAPACITY_FIELDS,
    CHAIRS_OFF_SEASON,
    CHAIRS_SEASON,
    DISTRICT,
    FRI_SAT_CLOSING_FIELDS,
    INSPECT,
    LOCATION_STATUS,
    LOCATION_TYPE,
    MON_THU_CLOSING_FIELDS,
    NEIGHBORHOOD,
    REVIEW,
    STATUS_CODE,
    STREET,
    TABLE_COUNT,
    TERRACE_STATUS,
)


@dataclass
class UpdateStep:
    """Bulk conditional update."""
    filter: Dict
    update: Dict
    description: str = ""


@dataclass
class ViewStep:
    """Full-overwrite copy of matching documents into another collection."""
    filter: Dict
    target: str
    description: str = ""


@dataclass
class TruncateStep:
    """Rewrite fractional or negative numbers of one field to coerce_count(value)."""
    field: str
    description: str = ""


Step = Union[UpdateStep, ViewStep, TruncateStep]


@dataclass
class FieldRule:
    """Named, ordered group of bulk steps."""
    name: str
    description: str
    steps: List[Step] = field(default_factory=list)
    idempotent: bool = True


def street_pattern(street: str) -> Dict:
    """Case-insensitive whole-value match."""
    return {'$regex': f"^{re.escape(street)}$", '$options': 'i'}


# ============================================================================
# RULE BUILDERS
# ============================================================================

def closure_rule(cfg: Dict) -> FieldRule:
    closed = cfg['closed_status']
    return FieldRule(
        name="closure",
        description=f"Close venues in {cfg['closure_neighborhood']} ({cfg['closure_district']})",
        steps=[UpdateStep(
            filter={
                DISTRICT: cfg['closure_district'],
                NEIGHBORHOOD: cfg['closure_neighborhood'],
            },
            update={'$set': {LOCATION_STATUS: closed, TERRACE_STATUS: closed}},
        )],
    )


def inspection_flag_rule(cfg: Dict) -> FieldRule:
    """
    Sidewalk terraces get a boolean flag; every other record that still has no
    flag gets an explicit null (unknown), so status derivation never mistakes
    "not evaluated" for "not inspected".
    """
    sidewalk = cfg['sidewalk_value']
    threshold = cfg['inspect_table_threshold']
    return FieldRule(
        name="inspection_flag",
        description=f"Flag sidewalk terraces with more than {threshold} tables",
        steps=[
            UpdateStep(
                filter={LOCATION_TYPE: sidewalk, TABLE_COUNT: {'$gt': threshold}},
                update={'$set': {INSPECT: True}},
                description="over threshold",
            ),
            UpdateStep(
                filter={LOCATION_TYPE: sidewalk, TABLE_COUNT: {'$lte': threshold}},
                update={'$set': {INSPECT: False}},
                description="at or under threshold",
            ),
            UpdateStep(
                filter={INSPECT: {'$exists': False}},
                update={'$set': {INSPECT: None}},
                description="unknown",
            ),
        ],
    )


def capacity_rule(cfg: Dict) -> FieldRule:
    """
    Make every capacity value a non-negative int, then increment.

    Non-numeric values become 0, doubles are truncated, negatives clamp to 0.
    """
    aux = cfg['aux_table_increment']
    chairs = cfg['chair_increment']
    steps: List[Step] = [
        UpdateStep(
            filter=non_numeric_filter(name),
            update={'$set': {name: 0}},
            description=f"normalize {name}",
        )
        for name in CAPACITY_FIELDS
    ]
    steps.extend(
        TruncateStep(field=name, description=f"truncate {name}")
        for name in CAPACITY_FIELDS
    )
    steps.extend(
        UpdateStep(
            filter={name: {'$lt': 0}},
            update={'$set': {name: 0}},
            description=f"clamp {name}",
        )
        for name in CAPACITY_FIELDS
    )
    steps.append(UpdateStep(
        filter={INSPECT: True},
        update={'$inc': {
            AUX_TABLES_SEASON: aux,
            AUX_TABLES_OFF_SEASON: aux,
            CHAIRS_SEASON: chairs,
            CHAIRS_OFF_SEASON: chairs,
        }},
        description="increment inspected terraces",
    ))
    return FieldRule(
        name="capacity",
        description=f"Add {aux} aux tables and {chairs} chairs to inspected terraces",
        steps=steps,
        idempotent=False,
    )


def status_code_rule(cfg: Dict) -> FieldRule:
    low = cfg['status_low_limit']
    high = cfg['status_high_limit']
    return FieldRule(
        name="status_code",
        description=f"Status code by seasonal chairs (<{low} / {low}-{high} / >{high})",
        steps=[
            UpdateStep(
                filter={INSPECT: False, CHAIRS_SEASON: {'$lt': low}},
                update={'$set': {STATUS_CODE: 1}},
            ),
            UpdateStep(
                filter={INSPECT: False, CHAIRS_SEASON: {'$gte': low, '$lte': high}},
                update={'$set': {STATUS_CODE: 2}},
            ),
            UpdateStep(
                filter={INSPECT: False, CHAIRS_SEASON: {'$gt': high}},
                update={'$set': {STATUS_CODE: 3}},
            ),
        ],
    )


def mon_thu_cap_rule(cfg: Dict) -> FieldRule:
    midnight = cfg['midnight']
    return FieldRule(
        name="mon_thu_cap",
        description=f"Cap Monday-Thursday closing time at {midnight}",
        steps=[
            UpdateStep(
                filter={name: {'$gt': midnight}},
                update={'$set': {name: midnight}},
                description=name,
            )
            for name in MON_THU_CLOSING_FIELDS
        ],
    )


def fri_sat_schedule_rule(cfg: Dict) -> FieldRule:
    # Exact string match: "02:30:00" is a different value and stays as is
    source = cfg['fri_sat_from']
    target = cfg['fri_sat_to']
    return FieldRule(
        name="fri_sat_schedule",
        description=f"Friday-Saturday closing {source} -> {target}",
        steps=[
            UpdateStep(
                filter={name: source},
                update={'$set': {name: target}},
                description=name,
            )
            for name in FRI_SAT_CLOSING_FIELDS
        ],
    )


def street_flag_rule(cfg: Dict) -> FieldRule:
    street = cfg['inspection_street']
    flag = cfg.get('street_flag_field', INSPECT)
    return FieldRule(
        name="street_flag",
        description=f"Flag venues on {street} ({flag})",
        steps=[UpdateStep(
            filter={STREET: street_pattern(street)},
            update={'$set': {flag: True}},
        )],
    )


def review_rule(cfg: Dict) -> FieldRule:
    return FieldRule(
        name="review",
        description=f"Attach review to '{cfg['open_status']}' terraces",
        steps=[UpdateStep(
            filter={TERRACE_STATUS: cfg['open_status']},
            update={'$set': {REVIEW: dict(cfg['review'])}},
        )],
    )


def zones_rule(cfg: Dict) -> FieldRule:
    return FieldRule(
        name="zones",
        description="Extract Zone A and Zone B collections",
        steps=[
            ViewStep(
                filter={DISTRICT: cfg['zone_a_district']},
                target=cfg['zone_a_collection'],
                description=f"zone A: {cfg['zone_a_district']}",
            ),
            ViewStep(
                filter={
                    DISTRICT: cfg['zone_b_district'],
                    NEIGHBORHOOD: cfg['zone_b_neighborhood'],
                },
                target=cfg['zone_b_collection'],
                description=f"zone B: {cfg['zone_b_district']}-{cfg['zone_b_neighborhood']}",
            ),
        ],
    )


RULE_BUILDERS = [
    closure_rule,
    inspection_flag_rule,
    capacity_rule,
    status_code_rule,
    mon_thu_cap_rule,
    fri_sat_schedule_rule,
    street_flag_rule,
    review_rule,
    zones_rule,
]


def build_rules(config: Optional[Dict] = None) -> List[FieldRule]:
    """
    Build the ordered rule set.

    Args:
        config: Overrides merged over NORMALIZER_CONFIG

    Returns:
        Rules in application order
    """
    cfg = dict(NORMALIZER_CONFIG)
    if config:
        cfg.update(config)
    return [builder(cfg) for builder in RULE_BUILDERS]


RULE_NAMES: List[str] = [rule.name for rule in build_rules()]
