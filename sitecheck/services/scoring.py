"""
Weighted-signal scoring shared by the page locators.

A detector declares its signals as data: an ordered list of (name, weight,
predicate) triples plus a threshold constant. evaluate() runs every predicate
against one parsed page and reports the total and which signals fired.
"""
import logging
from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, Tuple

from .html_loader import PageDocument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Signal:
    name: str
    weight: int
    predicate: Callable[[PageDocument], bool]


def evaluate(doc: PageDocument, signals: Iterable[Signal]) -> Tuple[int, FrozenSet[str]]:
    total = 0
    fired = set()
    for signal in signals:
        if signal.predicate(doc):
            total += signal.weight
            fired.add(signal.name)
    logger.debug("%s scored %d via %s", doc.name, total, sorted(fired))
    return total, frozenset(fired)


def score(doc: PageDocument, signals: Iterable[Signal]) -> int:
    return evaluate(doc, signals)[0]
