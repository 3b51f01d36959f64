# -*- coding: utf-8 -*-
"""
Field normalizer: applies the ordered rule set to the terrace collection.

Every step is one set-based bulk operation against the document store. Rules
run strictly in the order given; inside a rule, a failed step stops the
remaining steps of that rule (the capacity increment must never run over
un-normalized values), but the next rule still runs. There is no rollback:
the store keeps whatever the completed bulk operations wrote.

Example:
    store = DocumentStore.connect(MONGO_URI, MONGO_DB)
    normalizer = FieldNormalizer(store, "Terrazas")
    report = normalizer.run()                       # all nine rules
    report = normalizer.run(only=["review"])        # a single rule
"""
# Standard library
from typing import Dict, Iterable, List, Optional

# Third-party
from pymongo.errors import PyMongoError

# Project imports
from terraza_migration.normalization.field_rules import (
    FieldRule,
    TruncateStep,
    UpdateStep,
    ViewStep,
    build_rules,
)
from terraza_migration.normalization.field_values import coerce_count
from terraza_migration.utils.config import TERRACE_COLLECTION
from terraza_migration.utils.dataclasses import NormalizationReport, RuleResult
from terraza_migration.utils.logger import get_logger, log_section
from terraza_migration.utils.mongo_utils import DocumentStore

logger = get_logger(__name__)


class FieldNormalizer:
    """
    Ordered bulk rule application over one collection.

    Handles:
    - Rule selection by name (order always follows the rule set)
    - Per-rule error isolation
    - Matched/modified accounting per rule
    """

    def __init__(self, store: DocumentStore, collection: str = TERRACE_COLLECTION,
                 rules: Optional[List[FieldRule]] = None,
                 config: Optional[Dict] = None):
        """
        Args:
            store: Document store handle
            collection: Terrace collection name
            rules: Explicit rule list (default: build_rules(config))
            config: Overrides for NORMALIZER_CONFIG
        """
        self.store = store
        self.collection = collection
        self.rules = rules if rules is not None else build_rules(config)

    @property
    def rule_names(self) -> List[str]:
        return [rule.name for rule in self.rules]

    def select_rules(self, only: Optional[Iterable[str]] = None) -> List[FieldRule]:
        """
        Rules to run, in rule-set order.

        Raises:
            ValueError: Unknown rule name
        """
        if only is None:
            return list(self.rules)

        wanted = set(only)
        unknown = wanted - set(self.rule_names)
        if unknown:
            raise ValueError(
                f"Unknown rules: {sorted(unknown)} (available: {self.rule_names})"
            )
        return [rule for rule in self.rules if rule.name in wanted]

    def run(self, only: Optional[Iterable[str]] = None) -> NormalizationReport:
        """
        Apply the selected rules.

        Args:
            only: Rule names to run (default: all)

        Returns:
            NormalizationReport with one RuleResult per executed rule
        """
        rules = self.select_rules(only)
        log_section(logger, f"Normalizing {self.collection}")

        report = NormalizationReport()
        for position, rule in enumerate(rules, start=1):
            logger.info(f"[{position}/{len(rules)}] {rule.name}: {rule.description}")
            if not rule.idempotent:
                logger.warning(
                    f"{rule.name} is not idempotent; run it once per restored snapshot"
                )
            result = self.apply_rule(rule)
            report.results.append(result)

        if report.ok:
            logger.info(f"All {len(report.results)} rules applied")
        else:
            names = ", ".join(r.name for r in report.failed)
            logger.error(f"{len(report.failed)} rule(s) failed: {names}")
        return report

    def apply_rule(self, rule: FieldRule) -> RuleResult:
        """Run every step of one rule; stop at the first failing step."""
        result = RuleResult(name=rule.name)

        for step in rule.steps:
            try:
                self._apply_step(step, result)
            except PyMongoError as e:
                result.error = f"{step.description or type(step).__name__}: {e}"
                logger.error(f"{rule.name} failed at step '{step.description}': {e}")
                break
            result.steps_run += 1

        if result.ok:
            logger.info(
                f"  {rule.name}: matched={result.matched} modified={result.modified}"
                + (f" written={result.written}" if result.written else "")
            )
        return result

    def _apply_step(self, step, result: RuleResult):
        if isinstance(step, UpdateStep):
            matched, modified = self.store.update_many(self.collection, step.filter, step.update)
            result.matched += matched
            result.modified += modified
            logger.debug(f"    {step.description}: {matched} matched, {modified} modified")
        elif isinstance(step, ViewStep):
            written = self.store.materialize_view(self.collection, step.filter, step.target)
            result.written += written
            logger.info(f"    {step.description}: {written} documents -> {step.target}")
        elif isinstance(step, TruncateStep):
            # One update per distinct stored double
            doubles = self.store.distinct(
                self.collection, step.field, {step.field: {'$type': 'double'}}
            )
            for value in doubles:
                matched, modified = self.store.update_many(
                    self.collection, {step.field: value},
                    {'$set': {step.field: coerce_count(value)}},
                )
                result.matched += matched
                result.modified += modified
            logger.debug(f"    {step.description}: {len(doubles)} distinct values")
        else:
            raise TypeError(f"Unsupported step: {step!r}")
