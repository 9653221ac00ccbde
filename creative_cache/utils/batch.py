"""Batch execution with per-item failure isolation.

A sweep over many independent items (storage deletions, image downloads)
must never be aborted by one bad item. ``run_isolated`` runs a callable on
every item and records each result as an ``Outcome`` instead of raising.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, TypeVar

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


@dataclass
class Outcome(Generic[T, R]):
    """Result of running one item of a batch."""

    item: T
    ok: bool
    value: R | None = None
    error: Exception | None = None


def run_isolated(
    items: Iterable[T],
    func: Callable[[T], R],
    describe: Callable[[T], Any] = repr,
) -> list[Outcome[T, R]]:
    """
    Run ``func`` on every item, collecting successes and failures.

    Args:
        items: Items to process
        func: Callable applied to each item
        describe: Renders an item for log messages

    Returns:
        One Outcome per item, in input order
    """
    outcomes: list[Outcome[T, R]] = []

    for item in items:
        try:
            value = func(item)
        except Exception as e:
            logger.warning(f"Skipping {describe(item)}: {e}")
            outcomes.append(Outcome(item=item, ok=False, error=e))
            continue
        outcomes.append(Outcome(item=item, ok=True, value=value))

    failed = sum(1 for o in outcomes if not o.ok)
    if failed:
        logger.info(f"Batch finished: {len(outcomes) - failed} ok, {failed} skipped")

    return outcomes


def successes(outcomes: Iterable[Outcome[T, R]]) -> list[Outcome[T, R]]:
    return [o for o in outcomes if o.ok]


def failures(outcomes: Iterable[Outcome[T, R]]) -> list[Outcome[T, R]]:
    return [o for o in outcomes if not o.ok]


__all__ = ["Outcome", "run_isolated", "successes", "failures"]
