"""
Question-to-question correlation for quadmath.

This module computes Pearson correlations between every pair of questions in
a quiz, across the players who answered both, and turns a notable one into a
sentence such as::

    People who prefer "Cats" strongly tend to prefer "Tea"

The sentence picks the pole labels of the dominant cluster of players, so
the direction of the relationship reads naturally.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np

from quadmath.math.named_matrix import NamedMatrix, response_matrix
from quadmath.models import (
    NEUTRAL_VALUE, CorrelationFinding, CorrelationResult, Player, Question
)
from quadmath.utils.general import index_pairs, same_pair

logger = logging.getLogger(__name__)


SIGNIFICANCE_THRESHOLD = 0.25  # |r| must exceed this to be reported
SHORTLIST_SIZE = 3
STRONG_CORRELATION = 0.7
MODERATE_CORRELATION = 0.4

LOW_LOW = 'low_low'
LOW_HIGH = 'low_high'
HIGH_LOW = 'high_low'
HIGH_HIGH = 'high_high'


def pearson_correlation(values1: Iterable[float], values2: Iterable[float]) -> float:
    """
    Sample Pearson correlation coefficient.

    Args:
        values1: First list of values
        values2: Second list of values, same length as the first

    Returns:
        Coefficient in [-1, 1]; 0 for empty input or when either list is
        constant
    """
    x = np.asarray(list(values1), dtype=float)
    y = np.asarray(list(values2), dtype=float)

    if len(x) == 0 or len(y) == 0:
        return 0.0
    if len(x) != len(y):
        raise ValueError(f"Value lists differ in length: {len(x)} != {len(y)}")

    dx = x - x.mean()
    dy = y - y.mean()
    denominator = np.sqrt(np.sum(dx ** 2) * np.sum(dy ** 2))
    if denominator == 0:
        return 0.0

    # Clip float noise so perfectly correlated inputs stay within [-1, 1]
    return float(np.clip(np.sum(dx * dy) / denominator, -1.0, 1.0))


def quadrant_counts(values1: np.ndarray, values2: np.ndarray,
                    center: float = NEUTRAL_VALUE) -> Dict[str, int]:
    """
    Count players in each low/high × low/high cell.

    A value at or below the center is "low", above it is "high".

    Args:
        values1: Values for the first question
        values2: Values for the second question
        center: Split point

    Returns:
        Dictionary with low_low, low_high, high_low and high_high counts
    """
    low1 = np.asarray(values1) <= center
    low2 = np.asarray(values2) <= center
    return {
        LOW_LOW: int(np.sum(low1 & low2)),
        LOW_HIGH: int(np.sum(low1 & ~low2)),
        HIGH_LOW: int(np.sum(~low1 & low2)),
        HIGH_HIGH: int(np.sum(~low1 & ~low2)),
    }


def question_pair_correlation(nmat: NamedMatrix,
                              q1_id: Any,
                              q2_id: Any,
                              center: float = NEUTRAL_VALUE) -> Optional[CorrelationResult]:
    """
    Correlate two question columns over the players who answered both.

    Args:
        nmat: Player × question response matrix
        q1_id: First question id
        q2_id: Second question id
        center: Split point for the quadrant counts

    Returns:
        CorrelationResult, or None when fewer than 2 players answered both
    """
    col1 = nmat.get_col_by_name(q1_id)
    col2 = nmat.get_col_by_name(q2_id)

    mask = ~np.isnan(col1) & ~np.isnan(col2)
    if np.sum(mask) < 2:
        return None

    common1 = col1[mask]
    common2 = col2[mask]

    return CorrelationResult(
        question_ids=(q1_id, q2_id),
        coefficient=pearson_correlation(common1, common2),
        quadrants=quadrant_counts(common1, common2, center),
        n_players=int(np.sum(mask))
    )


def significant_correlations(nmat: NamedMatrix,
                             question_ids: List[Any],
                             exclude_pair: Optional[Tuple[Any, Any]] = None,
                             threshold: float = SIGNIFICANCE_THRESHOLD,
                             center: float = NEUTRAL_VALUE) -> List[CorrelationResult]:
    """
    All question pairs whose correlation clears the significance threshold.

    Args:
        nmat: Player × question response matrix
        question_ids: Questions in quiz order
        exclude_pair: Unordered pair of question ids to leave out
        threshold: Minimum |r|, exclusive
        center: Split point for the quadrant counts

    Returns:
        Results sorted by |r| descending; pairs with equal |r| keep quiz order
    """
    results = []
    for i, j in index_pairs(len(question_ids)):
        q1_id, q2_id = question_ids[i], question_ids[j]
        if same_pair(exclude_pair, q1_id, q2_id):
            continue

        result = question_pair_correlation(nmat, q1_id, q2_id, center)
        if result is None:
            continue
        if abs(result.coefficient) <= threshold:
            continue
        results.append(result)

    return sorted(results, key=lambda r: abs(r.coefficient), reverse=True)


def strength_word(coefficient: float) -> str:
    """Adverb describing how strong a correlation is."""
    magnitude = abs(coefficient)
    if magnitude > STRONG_CORRELATION:
        return 'strongly'
    if magnitude > MODERATE_CORRELATION:
        return 'moderately'
    return 'slightly'


def direction_labels(question1: Question,
                     question2: Question,
                     coefficient: float,
                     quadrants: Dict[str, int]) -> Tuple[str, str]:
    """
    Pick the pole labels describing the dominant cluster.

    Positive correlations compare the low-low and high-high cells, negative
    ones the low-high and high-low cells. The high side wins a tie.

    Returns:
        (label for question 1, label for question 2)
    """
    if coefficient > 0:
        if quadrants[LOW_LOW] > quadrants[HIGH_HIGH]:
            return question1.label_left, question2.label_left
        return question1.label_right, question2.label_right

    if quadrants[LOW_HIGH] > quadrants[HIGH_LOW]:
        return question1.label_left, question2.label_right
    return question1.label_right, question2.label_left


def describe_correlation(question1: Question,
                         question2: Question,
                         coefficient: float,
                         quadrants: Dict[str, int]) -> str:
    """
    Render a correlation as a sentence.
    """
    label1, label2 = direction_labels(question1, question2, coefficient, quadrants)
    return (f'People who prefer "{label1}" {strength_word(coefficient)} '
            f'tend to prefer "{label2}"')


def find_interesting_correlation(questions: List[Question],
                                 players: List[Player],
                                 responses: Iterable[Any],
                                 exclude_pair: Optional[Tuple[Any, Any]] = None,
                                 rng: Optional[Any] = None,
                                 threshold: float = SIGNIFICANCE_THRESHOLD,
                                 shortlist_size: int = SHORTLIST_SIZE,
                                 center: float = NEUTRAL_VALUE) -> Optional[CorrelationFinding]:
    """
    Find a notable correlation between two questions and describe it.

    The strongest few correlations form a shortlist and one is picked at
    random, so repeated requests show some variety. When the only notable
    pair is the excluded one, it is allowed to repeat.

    Args:
        questions: Quiz questions, in quiz order
        players: Players whose responses count
        responses: Objects with player_id, question_id and value attributes
        exclude_pair: Question id pair currently on display
        rng: Randomness source with a numpy Generator style integers();
            defaults to a fresh numpy Generator
        threshold: Minimum |r|, exclusive
        shortlist_size: Number of top correlations to pick from
        center: Low/high split point

    Returns:
        CorrelationFinding, or None when no pair is notable
    """
    question_ids = [q.id for q in questions]
    player_ids = [p.id for p in players]

    nmat = response_matrix(player_ids, question_ids, responses)
    nmat = nmat.rowname_subset(player_ids).colname_subset(question_ids)

    candidates = significant_correlations(nmat, question_ids, exclude_pair, threshold, center)
    if not candidates and exclude_pair is not None:
        logger.debug(f"No correlation besides {exclude_pair}, allowing it to repeat")
        candidates = significant_correlations(nmat, question_ids, None, threshold, center)

    if not candidates:
        logger.debug(f"No correlation above {threshold} among {len(question_ids)} questions")
        return None

    shortlist = candidates[:shortlist_size]
    if rng is None:
        rng = np.random.default_rng()
    chosen = shortlist[int(rng.integers(len(shortlist)))]

    by_id = {q.id: q for q in questions}
    question1 = by_id[chosen.question_ids[0]]
    question2 = by_id[chosen.question_ids[1]]

    logger.debug(f"Picked {chosen.question_ids} (r={chosen.coefficient:.3f}) "
                 f"from {len(shortlist)} of {len(candidates)} candidates")

    return CorrelationFinding(
        question1=question1,
        question2=question2,
        coefficient=chosen.coefficient,
        quadrants=chosen.quadrants,
        description=describe_correlation(question1, question2,
                                         chosen.coefficient, chosen.quadrants)
    )
