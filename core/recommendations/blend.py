"""Strategy blender.

Runs each strategy builder in fixed order, caps its output, concatenates,
dedupes on ``title_artist`` (first-seen wins) and applies the caller's
offset/limit window.

A builder that raises contributes nothing, so a single strategy outage is
never a 500. ``needs_fallback`` tells the caller when to serve the
trending source instead: every strategy failed, or together they produced
nothing.

Pure orchestration — builders are supplied by the caller and carry any I/O.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from core.config import DEFAULT_CONFIG, FeedConfig
from core.feed.merge import dedupe_recommendations
from core.feed.paginate import window
from core.feed.sources import ErrorHook, run_source
from core.feed.types import Page, RecommendationRecord

STRATEGY_ORDER: tuple[str, ...] = (
    "similar_artist",
    "trending_friends",
    "genre_exploration",
    "mood_based",
)

StrategyBuilder = Callable[[], Sequence[RecommendationRecord]]


@dataclass(frozen=True)
class StrategyOutcome:
    """Capped candidates from one strategy run."""

    strategy: str
    records: tuple[RecommendationRecord, ...] = ()
    failed: bool = False


def run_strategies(
    builders: Mapping[str, StrategyBuilder],
    config: FeedConfig = DEFAULT_CONFIG,
    on_error: ErrorHook | None = None,
) -> list[StrategyOutcome]:
    """Run the configured builders in ``STRATEGY_ORDER``.

    Strategies missing from *builders* are skipped. Output of each builder
    is truncated to its configured cap. *on_error* is called with
    ``(strategy, exc)`` for each builder that raised.
    """
    outcomes: list[StrategyOutcome] = []
    for name in STRATEGY_ORDER:
        builder = builders.get(name)
        if builder is None:
            continue
        result = run_source(name, builder, on_error)
        cap = config.cap_for(name)
        outcomes.append(
            StrategyOutcome(
                strategy=name,
                records=tuple(result.rows[:cap]),
                failed=result.failed,
            )
        )
    return outcomes


def needs_fallback(outcomes: Sequence[StrategyOutcome]) -> bool:
    """True if every strategy failed or none produced a candidate."""
    if not outcomes:
        return True
    if all(outcome.failed for outcome in outcomes):
        return True
    return not any(outcome.records for outcome in outcomes)


def blend(
    outcomes: Sequence[StrategyOutcome],
    offset: int,
    limit: int,
) -> Page[RecommendationRecord]:
    """Concatenate in strategy order, dedupe, then window.

    ``total`` is the deduplicated candidate count, so ``has_more`` follows
    the same rule as every other feed page.
    """
    candidates = [record for outcome in outcomes for record in outcome.records]
    return window(dedupe_recommendations(candidates), offset, limit)
