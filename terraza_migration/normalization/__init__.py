# -*- coding: utf-8 -*-
"""
Normalization package: ordered bulk field rules over the terrace collection.

Contains field_values (tagged ValueKind classification of heterogeneous capacity
values), field_rules (the nine ordered rules as bulk steps) and rule_engine
(FieldNormalizer, which applies them with per-rule error isolation).
"""
from terraza_migration.normalization.field_values import (
    ValueKind,
    classify_value,
    coerce_count,
    non_numeric_filter,
)
from terraza_migration.normalization.field_rules import (
    FieldRule,
    UpdateStep,
    ViewStep,
    RULE_NAMES,
    build_rules,
)
from terraza_migration.normalization.rule_engine import FieldNormalizer

__all__ = [
    'ValueKind',
    'classify_value',
    'coerce_count',
    'non_numeric_filter',
    'FieldRule',
    'UpdateStep',
    'ViewStep',
    'RULE_NAMES',
    'build_rules',
    'FieldNormalizer',
]
