"""Cross-check the actions a strategy mentions against the ones it exercised."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional

from strategy_lab.trade_engine.types import BUY, EXIT, SELL

ACTION_KEYWORDS = (BUY, SELL, EXIT, "short")

# "short" is how scripts talk about a sell-to-open.
_KEYWORD_TO_ACTION = {BUY: BUY, SELL: SELL, EXIT: EXIT, "short": SELL}
_PATTERNS = {kw: re.compile(rf"\b{kw}\b") for kw in ACTION_KEYWORDS}


@dataclass(frozen=True)
class Coverage:
    references: Dict[str, List[int]] = field(default_factory=dict)
    exercised: FrozenSet[str] = frozenset()
    uncovered: Dict[str, List[int]] = field(default_factory=dict)

    @property
    def coverage_pct(self) -> float:
        if not self.references:
            return 100.0
        covered = len(self.references) - len(self.uncovered)
        return round(covered / len(self.references) * 100, 2)


def scan_action_references(source: str) -> Dict[str, List[int]]:
    """Map each action keyword to the 1-based lines that mention it."""
    references: Dict[str, List[int]] = {}
    for lineno, line in enumerate(source.splitlines(), start=1):
        for keyword, pattern in _PATTERNS.items():
            if pattern.search(line):
                references.setdefault(keyword, []).append(lineno)
    return references


def analyze_coverage(source: Optional[str], actions_hit: Iterable[str]) -> Coverage:
    hit = frozenset(actions_hit)
    if not source:
        return Coverage(exercised=hit)

    references = scan_action_references(source)
    uncovered = {kw: lines for kw, lines in references.items() if _KEYWORD_TO_ACTION[kw] not in hit}
    return Coverage(references=references, exercised=hit, uncovered=uncovered)
