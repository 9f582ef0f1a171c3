#!/usr/bin/env python3
"""Progressive Rule Engine — evaluation with first-failure cutoff.

Evaluates the password against the ordered catalog and reveals rules only up
to (and including) the first one that fails. Fixing that rule immediately
reveals the next one.

Rules can be switched off at run time through the ActivationRegistry. A
disabled rule always passes, so it never blocks disclosure, but it is still
reported (active=False) so the player can turn it back on.

evaluate() is pure and cheap: the session calls it after every mutation.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from password_rules import Rule

# ============================================================
# DATA MODEL
# ============================================================

@dataclass(frozen=True)
class RuleResult:
    id: str
    label: str
    valid: bool
    active: bool


@dataclass(frozen=True)
class Evaluation:
    results: tuple
    visible: tuple

    @property
    def all_satisfied(self) -> bool:
        """Every active rule passes, and there is at least one active rule."""
        active = [r for r in self.results if r.active]
        return bool(active) and all(r.valid for r in active)

    @property
    def satisfied(self) -> int:
        return sum(1 for r in self.visible if r.valid)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def current(self) -> Optional[RuleResult]:
        """The rule blocking disclosure, or None when nothing fails."""
        if self.visible and not self.visible[-1].valid:
            return self.visible[-1]
        return None

    def is_visible(self, rule_id: str) -> bool:
        return any(r.id == rule_id for r in self.visible)


# ============================================================
# EVALUATOR
# ============================================================

def evaluate(rendered_text: str, catalog: list[Rule], active_ids) -> Evaluation:
    """Evaluate every rule in catalog order and cut at the first failure."""
    results = []
    for rule in catalog:
        active = rule.id in active_ids
        valid = rule.test(rendered_text) if active else True
        results.append(RuleResult(id=rule.id, label=rule.label, valid=valid, active=active))

    first_fail = next((i for i, r in enumerate(results) if not r.valid), None)
    count = len(results) if first_fail is None else first_fail + 1
    return Evaluation(results=tuple(results), visible=tuple(results[:count]))


# ============================================================
# ACTIVATION REGISTRY
# ============================================================

class ActivationRegistry:
    """Which rule ids are switched on.

    Only ids from the current catalog are tracked: toggling an id the catalog
    does not contain is refused rather than recorded. Every tracked id is kept
    separately from the enabled set, so that a catalog change can tell a
    disabled rule apart from a brand-new one.
    """

    def __init__(self, rule_ids: Iterable[str] = ()):
        self._known = set(rule_ids)
        self._active = set(self._known)

    def __contains__(self, rule_id: str) -> bool:
        return rule_id in self._active

    def is_active(self, rule_id: str) -> bool:
        return rule_id in self._active

    def active_ids(self) -> frozenset:
        return frozenset(self._active)

    def known_ids(self) -> frozenset:
        return frozenset(self._known)

    def toggle(self, rule_id: str) -> bool:
        """Flip a catalog rule on/off. Returns False, changing nothing, for ids outside the catalog."""
        if rule_id not in self._known:
            return False
        if rule_id in self._active:
            self._active.discard(rule_id)
        else:
            self._active.add(rule_id)
        return True

    def disable(self, rule_ids: Iterable[str]) -> list[str]:
        """Switch off several ids at once. Returns the unknown ones."""
        unknown = []
        for rid in rule_ids:
            if rid in self._known:
                self._active.discard(rid)
            else:
                unknown.append(rid)
        return unknown

    def reconcile(self, catalog_ids: Iterable[str]):
        """Drop ids that left the catalog; new ids start enabled."""
        catalog_ids = set(catalog_ids)
        new_ids = catalog_ids - self._known
        self._known &= catalog_ids
        self._active &= catalog_ids
        self._known |= new_ids
        self._active |= new_ids
