"""
Superlatives: social-comparison awards computed from response vectors.

Pair awards (most alike, most opposed) look at every unordered pair of
players; single-player awards (most extreme, most neutral, wildcard) look at
every player. Players without any responses are skipped. Ties go to the
first candidate in roster order.
"""

from typing import Callable, Dict, List, Optional

from quadmath.math.distance import deviation_from_center, distance_matrix, variance
from quadmath.models import (
    NEUTRAL_VALUE, PairSuperlative, Player, PlayerSuperlative, ResponseVector
)
from quadmath.utils.general import index_pairs


MOST_ALIKE = 'most_alike'
MOST_OPPOSED = 'most_opposed'
MOST_EXTREME = 'most_extreme'
MOST_NEUTRAL = 'most_neutral'
WILDCARD = 'wildcard'

DESCRIPTIONS = {
    MOST_ALIKE: 'Two peas in a pod',
    MOST_OPPOSED: 'Opposite ends of the spectrum',
    MOST_EXTREME: 'Strongest opinions',
    MOST_NEUTRAL: 'Playing it safe',
    WILDCARD: 'All over the place',
}


def _players_with_data(players: List[Player],
                       vectors: Dict[str, ResponseVector]) -> List[Player]:
    return [p for p in players if vectors.get(p.id)]


def _best_pair(kind: str,
               players: List[Player],
               vectors: Dict[str, ResponseVector],
               better: Callable[[float, float], bool]) -> Optional[PairSuperlative]:
    candidates = _players_with_data(players, vectors)
    if len(candidates) < 2:
        return None

    dists = distance_matrix([p.id for p in candidates], vectors)

    best = None
    best_score = None
    for i, j in index_pairs(len(candidates)):
        if best_score is None or better(dists[i, j], best_score):
            best = (candidates[i], candidates[j])
            best_score = float(dists[i, j])

    return PairSuperlative(
        kind=kind,
        players=list(best),
        score=best_score,
        description=DESCRIPTIONS[kind]
    )


def _best_player(kind: str,
                 players: List[Player],
                 vectors: Dict[str, ResponseVector],
                 metric: Callable[[ResponseVector], float],
                 better: Callable[[float, float], bool]) -> Optional[PlayerSuperlative]:
    best = None
    best_score = None
    for player in _players_with_data(players, vectors):
        score = metric(vectors[player.id])
        if best_score is None or better(score, best_score):
            best = player
            best_score = score

    if best is None:
        return None

    return PlayerSuperlative(
        kind=kind,
        player=best,
        score=best_score,
        description=DESCRIPTIONS[kind]
    )


def _lower(a: float, b: float) -> bool:
    return a < b


def _higher(a: float, b: float) -> bool:
    return a > b


def most_alike(players: List[Player],
               vectors: Dict[str, ResponseVector]) -> Optional[PairSuperlative]:
    """
    The pair of players with the smallest response distance.

    Args:
        players: Roster, in display order
        vectors: Response vectors by player id

    Returns:
        PairSuperlative, or None if fewer than 2 players have responses
    """
    return _best_pair(MOST_ALIKE, players, vectors, _lower)


def most_opposed(players: List[Player],
                 vectors: Dict[str, ResponseVector]) -> Optional[PairSuperlative]:
    """
    The pair of players with the largest response distance.

    Args:
        players: Roster, in display order
        vectors: Response vectors by player id

    Returns:
        PairSuperlative, or None if fewer than 2 players have responses
    """
    return _best_pair(MOST_OPPOSED, players, vectors, _higher)


def most_extreme(players: List[Player],
                 vectors: Dict[str, ResponseVector],
                 center: float = NEUTRAL_VALUE) -> Optional[PlayerSuperlative]:
    """The player whose answers sit furthest from the midpoint on average."""
    return _best_player(MOST_EXTREME, players, vectors,
                        lambda v: deviation_from_center(v, center), _higher)


def most_neutral(players: List[Player],
                 vectors: Dict[str, ResponseVector],
                 center: float = NEUTRAL_VALUE) -> Optional[PlayerSuperlative]:
    """The player whose answers sit closest to the midpoint on average."""
    return _best_player(MOST_NEUTRAL, players, vectors,
                        lambda v: deviation_from_center(v, center), _lower)


def wildcard(players: List[Player],
             vectors: Dict[str, ResponseVector]) -> Optional[PlayerSuperlative]:
    """The player whose answers vary the most."""
    return _best_player(WILDCARD, players, vectors, variance, _higher)


def compute_superlatives(players: List[Player],
                         vectors: Dict[str, ResponseVector],
                         center: float = NEUTRAL_VALUE) -> Dict[str, Optional[object]]:
    """
    Compute all five awards.

    Args:
        players: Roster, in display order
        vectors: Response vectors by player id
        center: Neutral slider value

    Returns:
        Dictionary keyed by award kind; an award is None when there is not
        enough data for it
    """
    return {
        MOST_ALIKE: most_alike(players, vectors),
        MOST_OPPOSED: most_opposed(players, vectors),
        MOST_EXTREME: most_extreme(players, vectors, center),
        MOST_NEUTRAL: most_neutral(players, vectors, center),
        WILDCARD: wildcard(players, vectors),
    }
