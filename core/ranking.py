"""Recency-weighted popularity scoring for the quick-access prompt list.

Updates:
  v0.2.0 - 2026-10-09 - Accept configurable top-N limit instead of a fixed eight.
  v0.1.0 - 2026-10-05 - Introduce ranking service with linear recency decay.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable

    from models.prompt_model import Prompt

_SECONDS_PER_HOUR = 3600.0


class RankingWeightsLike(Protocol):
    """Anything exposing the four ranking weights (e.g. ``config.RankingWeights``)."""

    copy_weight: float
    search_weight: float
    recency_boost: float
    recency_window_hours: float


@dataclass(frozen=True, slots=True)
class PromptRankingService:
    """Score prompts by weighted usage plus a linearly decaying recency lift.

    Scores carry no absolute meaning and are only used for ordering. Negative
    weights are accepted as given; validating them is the caller's job.
    """

    copy_weight: float
    search_weight: float
    recency_boost: float
    recency_window_hours: float

    @classmethod
    def from_weights(cls, weights: RankingWeightsLike) -> PromptRankingService:
        return cls(
            copy_weight=float(weights.copy_weight),
            search_weight=float(weights.search_weight),
            recency_boost=float(weights.recency_boost),
            recency_window_hours=float(weights.recency_window_hours),
        )

    def score(self, prompt: Prompt, now: datetime | None = None) -> float:
        """Return the ranking score of *prompt* at *now* (defaults to the current time)."""
        reference = now or datetime.now(UTC)
        weighted = (prompt.copy_count * self.copy_weight) + (
            prompt.search_count * self.search_weight
        )
        return weighted + self.recency_lift(prompt, reference)

    def recency_lift(self, prompt: Prompt, now: datetime) -> float:
        """Return the time-decayed bonus for recent copy or search activity."""
        if self.recency_window_hours <= 0:
            return 0.0
        last_active = prompt.last_active_at
        if last_active is None:
            return 0.0
        # Clock skew can put activity in the future; clamp to zero elapsed.
        elapsed_hours = max(0.0, (now - last_active).total_seconds() / _SECONDS_PER_HOUR)
        if elapsed_hours >= self.recency_window_hours:
            return 0.0
        ratio = 1.0 - (elapsed_hours / self.recency_window_hours)
        return self.recency_boost * ratio

    def rank(self, prompts: Iterable[Prompt], now: datetime | None = None) -> list[Prompt]:
        """Return *prompts* sorted by score, ties broken by most recent update."""
        reference = now or datetime.now(UTC)
        scored = [(self.score(prompt, reference), prompt) for prompt in prompts]
        scored.sort(key=lambda item: (item[0], item[1].updated_at), reverse=True)
        return [prompt for _, prompt in scored]

    def top(
        self,
        prompts: Iterable[Prompt],
        limit: int,
        now: datetime | None = None,
    ) -> list[Prompt]:
        """Return the *limit* highest-ranked prompts."""
        if limit <= 0:
            return []
        return self.rank(prompts, now)[:limit]


__all__ = ["PromptRankingService", "RankingWeightsLike"]
