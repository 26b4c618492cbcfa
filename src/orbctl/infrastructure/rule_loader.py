"""Migration rule documents.

A rule file holds one document or a list of documents::

    from: 1.4.0
    to: 2.0.0
    rules:
      - id: 1
        type: parameter_renamed
        scope: build
        old: node_version
        new: node-version
        rationale: Align with kebab-case parameter names
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from orbctl.domain.errors import InvalidRule, RuleSetError
from orbctl.domain.rules import MigrationRuleSet, rule_set_from_record
from orbctl.infrastructure.orb_loader import parse_yaml

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = (".yml", ".yaml")


def load_rule_text(text: str, source: str = "<string>") -> list[MigrationRuleSet]:
    """Parse every rule-set document in *text*.

    Raises:
        OrbParseError: the text is not valid YAML.
        RuleSetError: a document is malformed or its rules conflict.
    """
    data = parse_yaml(text, source)
    if data is None:
        return []
    documents = data if isinstance(data, list) else [data]
    rule_sets: list[MigrationRuleSet] = []
    for index, document in enumerate(documents):
        if not isinstance(document, Mapping):
            msg = f"{source}: document {index} is not a mapping"
            raise InvalidRule(msg)
        try:
            rule_sets.append(rule_set_from_record(document))
        except RuleSetError as exc:
            raise type(exc)(f"{source}: {exc}") from exc
    for rule_set in rule_sets:
        for warning in rule_set.warnings:
            logger.warning("%s: %s", source, warning)
    return rule_sets


def load_rules_dir(directory: Path) -> list[MigrationRuleSet]:
    """Load every ``*.yml`` / ``*.yaml`` file under *directory*, sorted by path."""
    if not directory.is_dir():
        logger.debug("Rules directory %s does not exist; no rules loaded", directory)
        return []
    rule_sets: list[MigrationRuleSet] = []
    for path in sorted(directory.rglob("*")):
        if not path.is_file() or path.suffix not in _YAML_SUFFIXES:
            continue
        loaded = load_rule_text(path.read_text(encoding="utf-8"), str(path))
        logger.debug("Loaded %d rule set(s) from %s", len(loaded), path)
        rule_sets.extend(loaded)
    return rule_sets
