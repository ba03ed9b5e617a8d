"""
Ordered regex rule tables.

Every heuristic in the extractors is a list of (pattern, extractor) pairs
evaluated in order with early exit: the first rule that matches decides.
Keeping the rules as data lets each one be tested on its own and lets the
order change without touching control flow.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterator, List, Match, Optional, Pattern, Sequence, Tuple


@dataclass(frozen=True)
class Rule:
    """
    A named pattern and the function that turns its match into a value.

    The extractor returns None to reject a match (for example when a
    numeric capture does not parse or is not positive).
    """
    name: str
    pattern: Pattern
    extract: Callable[[Match], Any]

    @classmethod
    def compile(cls, name: str, regex: str, extract: Callable[[Match], Any],
                flags: int = 0) -> 'Rule':
        return cls(name=name, pattern=re.compile(regex, flags), extract=extract)

    def apply(self, text: str) -> Optional[Any]:
        """Extract a value from the first match of this rule in text, if any."""
        match = self.pattern.search(text)
        if match is None:
            return None
        return self.extract(match)


class RuleTable:
    """An ordered, immutable sequence of rules."""

    def __init__(self, rules: Sequence[Rule]):
        self._rules: Tuple[Rule, ...] = tuple(rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __getitem__(self, index: int) -> Rule:
        return self._rules[index]

    @property
    def names(self) -> List[str]:
        return [rule.name for rule in self._rules]

    def first_match(self, text: str) -> Optional[Tuple[Rule, Match]]:
        """
        Return the first rule whose pattern matches text, with its match.

        Later rules are never tried once one matches, even if the winning
        rule's extractor goes on to reject the match.
        """
        for rule in self._rules:
            match = rule.pattern.search(text)
            if match:
                return rule, match
        return None

    def first_accepted(self, text: str) -> Optional[Tuple[Rule, Any]]:
        """
        Return the first value any rule accepts, scanning every match of a
        rule before moving on to the next rule.
        """
        for rule in self._rules:
            for match in rule.pattern.finditer(text):
                value = rule.extract(match)
                if value is not None:
                    return rule, value
        return None

    def collect(self, text: str, limit: int,
                transform: Optional[Callable[[Any], Any]] = None) -> Tuple[Optional[Rule], List[Any]]:
        """
        Collect accepted values from the first rule that yields any.

        Matching stops for a rule once `limit` values have been accepted;
        remaining rules are skipped as soon as one rule has produced at
        least one value. `transform` post-processes each extracted value
        and may reject it by returning None.
        """
        for rule in self._rules:
            values: List[Any] = []
            for match in rule.pattern.finditer(text):
                if len(values) >= limit:
                    break
                value = rule.extract(match)
                if value is not None and transform is not None:
                    value = transform(value)
                if value is not None:
                    values.append(value)
            if values:
                return rule, values
        return None, []
