"""RulesService: inspect the loaded migration rule sets."""

from __future__ import annotations

from orbctl.domain.versions import format_gap
from orbctl.services.base import SERVICE_ERRORS, BaseService
from orbctl.services.contracts import RuleListData, dump_validated
from orbctl.services.result import ServiceResult


class RulesService(BaseService):
    """Rule-set listing and load-time checks."""

    def list_rules(self) -> ServiceResult:
        """Every rule set in gap order, plus gaps that have no rules."""
        op = "list_rules"
        try:
            store = self._catalog.store
            registry = self._catalog.registry
        except SERVICE_ERRORS as exc:
            return self._error(op, exc)

        rule_sets = [
            {
                "gap": format_gap(rule_set.gap),
                "rules": [
                    {
                        "id": rule.id,
                        "type": rule.rule_type,
                        "scope": str(rule.scope),
                        "description": rule.describe(),
                        "rationale": rule.rationale,
                    }
                    for rule in rule_set.rules
                ],
                "warnings": rule_set.warnings,
            }
            for rule_set in registry
        ]
        uncovered = [format_gap(gap) for gap in store.gaps() if gap not in registry]
        data = {"count": len(rule_sets), "rule_sets": rule_sets, "uncovered_gaps": uncovered}
        return ServiceResult(ok=True, op=op, data=dump_validated(RuleListData, data))

    def check_rules(self) -> ServiceResult:
        """Load and validate every rule set; report conflicts as errors."""
        op = "check_rules"
        listed = self.list_rules()
        if not listed.ok:
            return listed.model_copy(update={"op": op})
        warnings = [w for item in listed.data["rule_sets"] for w in item["warnings"]]
        data = {
            "rule_sets": listed.data["count"],
            "rules": sum(len(item["rules"]) for item in listed.data["rule_sets"]),
            "uncovered_gaps": listed.data["uncovered_gaps"],
        }
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)
