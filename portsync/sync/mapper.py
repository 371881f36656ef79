"""Path mapper — translate a changed source path into its expected target path."""

from __future__ import annotations

from collections.abc import Sequence

from portsync.models import ExtensionRule, MappingResult, MappingRule


class PathMapper:
    """Applies ordered prefix rules, then optional extension rules.

    The first matching prefix rule wins. Extension rules are a separate,
    explicit step and only run on paths a prefix rule already mapped.
    A path no prefix rule matches is reported unmapped, never guessed.
    """

    def __init__(
        self,
        rules: Sequence[MappingRule],
        extension_rules: Sequence[ExtensionRule] = (),
    ):
        self.rules = tuple(rules)
        self.extension_rules = tuple(extension_rules)

    def map(self, path: str) -> MappingResult:
        for rule in self.rules:
            if rule.matches(path):
                target = rule.target_prefix + path[len(rule.source_prefix):]
                ext_rule = self._extension_rule_for(target)
                if ext_rule:
                    target = target[: len(target) - len(ext_rule.source_suffix)] + ext_rule.target_suffix
                return MappingResult(source=path, target=target, rule=rule, extension_rule=ext_rule)
        return MappingResult(source=path)

    def _extension_rule_for(self, path: str) -> ExtensionRule | None:
        for rule in self.extension_rules:
            if rule.matches(path):
                return rule
        return None
