"""
Distance and spread statistics over response vectors.

A response vector maps question ids to slider values in [1, 10]. Comparisons
between two players only use the questions both of them answered.
"""

from typing import Any, Dict, Iterable, List

import numpy as np

from quadmath.models import NEUTRAL_VALUE, ResponseVector


def shared_values(a: ResponseVector, b: ResponseVector):
    """
    Align two response vectors on the questions both answered.
    
    Args:
        a: First response vector
        b: Second response vector
        
    Returns:
        Tuple of two numpy arrays, in the order of a's questions
    """
    shared = [qid for qid in a if qid in b]
    return (np.array([a[qid] for qid in shared], dtype=float),
            np.array([b[qid] for qid in shared], dtype=float))


def euclidean_distance(a: ResponseVector, b: ResponseVector) -> float:
    """
    Root-mean-square difference over the shared questions.
    
    Dividing by the number of shared questions keeps pairs that overlap on
    many questions comparable with pairs that overlap on few.
    
    Args:
        a: First response vector
        b: Second response vector
        
    Returns:
        Distance, or 0 when the vectors share no questions
    """
    values_a, values_b = shared_values(a, b)
    if len(values_a) == 0:
        return 0.0
    return float(np.sqrt(np.mean((values_a - values_b) ** 2)))


def deviation_from_center(vector: ResponseVector,
                          center: float = NEUTRAL_VALUE) -> float:
    """
    Mean absolute distance of a player's answers from the slider midpoint.
    
    Args:
        vector: Response vector
        center: Neutral value
        
    Returns:
        Mean deviation, or 0 for an empty vector
    """
    if not vector:
        return 0.0
    values = np.array(list(vector.values()), dtype=float)
    return float(np.mean(np.abs(values - center)))


def variance(vector: ResponseVector) -> float:
    """
    Population variance of a player's answers.
    
    Args:
        vector: Response vector
        
    Returns:
        Variance, or 0 for an empty vector
    """
    if not vector:
        return 0.0
    return float(np.var(np.array(list(vector.values()), dtype=float)))


def vectors_by_player(responses: Iterable[Any]) -> Dict[str, ResponseVector]:
    """
    Group responses into one vector per player.
    
    A later response for the same (player, question) replaces the earlier one.
    
    Args:
        responses: Objects with player_id, question_id and value attributes
        
    Returns:
        Dictionary mapping player id to response vector
    """
    vectors: Dict[str, ResponseVector] = {}
    for response in responses:
        vectors.setdefault(response.player_id, {})[response.question_id] = float(response.value)
    return vectors


def distance_matrix(player_ids: List[str],
                    vectors: Dict[str, ResponseVector]) -> np.ndarray:
    """
    Pairwise distances between players, in roster order.
    
    Args:
        player_ids: Player ids
        vectors: Response vectors by player id
        
    Returns:
        Symmetric n x n array with zeros on the diagonal
    """
    n = len(player_ids)
    dists = np.zeros((n, n))
    for i in range(n):
        for j in range(i + 1, n):
            d = euclidean_distance(vectors.get(player_ids[i], {}),
                                   vectors.get(player_ids[j], {}))
            dists[i, j] = d
            dists[j, i] = d
    return dists
