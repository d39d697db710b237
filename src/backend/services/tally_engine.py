"""
Tally engine contract and the default weighted implementation.

The coordinator treats the engine as a black box: ``compute(setting)``
turns a voting state into a PollResult. It may be slow and is always
called off the event loop.
"""

import math
from typing import Protocol

from models.topic import PlanScore, PollResult, Setting


class TallyEngine(Protocol):
    """Turns a voting state into a ranked outcome."""

    def compute(self, setting: Setting) -> PollResult: ...


class WeightedTallyEngine:
    """
    Normalised weighted sum.

    Each registered voter's weights over the topic's plans are scaled to sum
    to 1, then summed per plan. Weights on unknown plans are ignored. Ties
    keep the topic's plan order.
    """

    def compute(self, setting: Setting) -> PollResult:
        scores = {plan_id: 0.0 for plan_id in setting.plans}
        ballots = 0

        for user_id, vote in setting.votes.items():
            if user_id not in setting.voters:
                continue
            weights = {
                plan_id: weight
                for plan_id, weight in vote.items()
                if plan_id in scores and math.isfinite(weight) and weight > 0
            }
            total = sum(weights.values())
            if total <= 0:
                continue
            ballots += 1
            for plan_id, weight in weights.items():
                scores[plan_id] += weight / total

        order = {plan_id: index for index, plan_id in enumerate(setting.plans)}
        ranking = sorted(scores.items(), key=lambda item: (-item[1], order[item[0]]))

        return PollResult(
            ranking=[PlanScore(plan_id=plan_id, score=score) for plan_id, score in ranking],
            voter_count=len(setting.voters),
            ballot_count=ballots,
        )
