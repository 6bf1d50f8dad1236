"""
Ordered rule tables: first matching rule wins.

Priority cascades (occupation, tech attitude, relationship hedges, ...) are
expressed as data: a tuple of Rule(name, predicate, outcome) evaluated in
order. Each rule can be tested on its own and priority is the position in
the table. An outcome is either a fixed string or a function of the signals
(for rules whose result has sub-cases).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Sequence, TypeVar, Union

T = TypeVar("T")

Outcome = Union[str, Callable[[T], str]]


@dataclass(frozen=True)
class Rule(Generic[T]):
    name: str
    predicate: Callable[[T], bool]
    outcome: Outcome

    def matches(self, subject: T) -> bool:
        return self.predicate(subject)

    def resolve(self, subject: T) -> str:
        if callable(self.outcome):
            return self.outcome(subject)
        return self.outcome


def match_rule(rules: Sequence[Rule[T]], subject: T) -> Rule[T] | None:
    """First rule whose predicate holds, or None."""
    for rule in rules:
        if rule.matches(subject):
            return rule
    return None


def first_match(rules: Sequence[Rule[T]], subject: T, default: str) -> str:
    """Outcome of the first matching rule; default when none match."""
    rule = match_rule(rules, subject)
    return rule.resolve(subject) if rule is not None else default
