"""Consensus voting module for fpenroll

This module contains:
- PairwiseScores: the three similarity scores between accepted samples
- score_triangle: runs the comparator over slots (0,1), (1,2), (2,0)
- cast_vote: odd-sample-out rule picking the most representative sample

The pair with the lowest score is the most dissimilar one; the sample absent
from that pair is taken as the representative. Its two supporting scores are
the ones that involve it.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence, Tuple

from fpenroll.collaborators import Comparator
from fpenroll.errors import ConsensusTieError
from fpenroll.models import Template


@dataclass(frozen=True)
class PairwiseScores:
    """Similarity scores between slots 0, 1 and 2.

    Attributes:
        s01: Score between slot 0 and slot 1
        s12: Score between slot 1 and slot 2
        s20: Score between slot 2 and slot 0
    """
    s01: float
    s12: float
    s20: float

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.s01, self.s12, self.s20)


@dataclass(frozen=True)
class Vote:
    """Winning slot and the two scores supporting it."""
    winner: int
    supporting: Tuple[float, float]

    @property
    def best_support(self) -> float:
        return max(self.supporting)

    def passes(self, threshold: float) -> bool:
        """True if at least one supporting score reaches ``threshold``."""
        return self.best_support >= threshold


def score_triangle(comparator: Comparator, templates: Sequence[Template]) -> PairwiseScores:
    """Compare the three accepted templates pairwise.

    Args:
        comparator: Similarity service
        templates: Exactly three templates, in slot order

    Returns:
        PairwiseScores for (0,1), (1,2), (2,0)

    Raises:
        ValueError: If ``templates`` does not hold exactly three entries
    """
    if len(templates) != 3:
        raise ValueError(f"Voting needs exactly 3 templates, got {len(templates)}")

    t0, t1, t2 = templates
    return PairwiseScores(
        s01=comparator.compare(t0, t1),
        s12=comparator.compare(t1, t2),
        s20=comparator.compare(t2, t0),
    )


def cast_vote(scores: PairwiseScores) -> Vote:
    """Pick the sample not involved in the lowest-scoring pair.

    Conditions are tested for slot 0, then 1, then 2, so a tie on the minimum
    between two pairs resolves to the first slot whose condition holds.

    Args:
        scores: Pairwise scores of the three accepted samples

    Returns:
        Vote with the winning slot and its supporting scores

    Raises:
        ConsensusTieError: If all three scores are equal
    """
    s01, s12, s20 = scores.as_tuple()

    if s01 == s12 == s20:
        raise ConsensusTieError(f"All pairwise scores equal ({s01}); no sample stands out")

    if s01 >= s12 and s20 >= s12:
        return Vote(winner=0, supporting=(s01, s20))
    if s12 >= s20 and s01 >= s20:
        return Vote(winner=1, supporting=(s12, s01))
    if s20 >= s01 and s12 >= s01:
        return Vote(winner=2, supporting=(s20, s12))

    # Unreachable for comparable numbers; NaN scores end up here.
    raise ConsensusTieError(f"Scores {scores.as_tuple()} do not single out a sample")
