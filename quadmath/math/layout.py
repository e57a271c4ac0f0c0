"""
Quadrant layout: placing players on a 2D plot of two questions.

Each player's answers to the x-axis and y-axis questions are projected onto
a square plot measured in percent (0-100). Markers closer than the collision
threshold are grouped, and each group is fanned out in a "spoke" pattern
around its members' positions so every marker stays visible.

The collision pass runs once. Markers pushed next to another group by the
spokes are not re-checked.
"""

import logging
from typing import Any, Iterable, List, Optional

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import connected_components
from scipy.spatial.distance import pdist, squareform

from quadmath.math.named_matrix import NamedMatrix, response_matrix
from quadmath.models import (
    MAX_VALUE, MIN_VALUE, NEUTRAL_VALUE, AxisInfo, PlottedPosition, Player,
    QuadrantPlot, Question
)

logger = logging.getLogger(__name__)


COLLISION_THRESHOLD = 8.0  # percent of the plot size
SPOKE_RADIUS = 6.0         # percent of the plot size

X_AXIS = 'x'
Y_AXIS = 'y'


def project(value: float, axis: str) -> float:
    """
    Map a slider value onto plot percent.

    The y axis is inverted so larger values plot toward the top.

    Args:
        value: Slider value in [1, 10]
        axis: 'x' or 'y'

    Returns:
        Position in percent, 0-100
    """
    span = MAX_VALUE - MIN_VALUE
    if axis == X_AXIS:
        return (value - MIN_VALUE) / span * 100
    if axis == Y_AXIS:
        return (MAX_VALUE - value) / span * 100
    raise ValueError(f"Unknown axis: {axis}")


def collision_clusters(points: np.ndarray,
                       threshold: float = COLLISION_THRESHOLD) -> List[List[int]]:
    """
    Group points that collide directly or through a chain of collisions.

    Args:
        points: n x 2 array of positions
        threshold: Points closer than this collide

    Returns:
        Clusters as lists of point indices in ascending order; each point
        appears in exactly one cluster, singletons included
    """
    n = len(points)
    if n == 0:
        return []
    if n == 1:
        return [[0]]

    dists = squareform(pdist(points))
    adjacency = (dists < threshold) & ~np.eye(n, dtype=bool)

    _, labels = connected_components(csr_matrix(adjacency), directed=False)

    clusters = {}
    for idx, label in enumerate(labels):
        clusters.setdefault(label, []).append(idx)

    return sorted(clusters.values(), key=lambda members: members[0])


def spoke_offsets(count: int, radius: float = SPOKE_RADIUS) -> np.ndarray:
    """
    Offsets spreading count markers evenly around a circle.

    Member k of m sits at angle 2πk/m.

    Returns:
        count x 2 array of (dx, dy) offsets
    """
    angles = 2 * np.pi * np.arange(count) / count
    return np.column_stack((radius * np.cos(angles), radius * np.sin(angles)))


def resolve_collisions(points: np.ndarray,
                       threshold: float = COLLISION_THRESHOLD,
                       radius: float = SPOKE_RADIUS) -> np.ndarray:
    """
    Compute marker offsets for a set of raw positions.

    Args:
        points: n x 2 array of raw positions
        threshold: Collision distance
        radius: Spoke radius

    Returns:
        n x 2 array of offsets; zero for markers that collide with nothing
    """
    points = np.asarray(points, dtype=float).reshape(-1, 2)
    offsets = np.zeros_like(points)

    for members in collision_clusters(points, threshold):
        if len(members) < 2:
            continue
        offsets[members] = spoke_offsets(len(members), radius)

    return offsets


def axis_info(question: Question) -> AxisInfo:
    return AxisInfo(
        question_id=question.id,
        prompt=question.prompt,
        label_low=question.label_left,
        label_high=question.label_right
    )


def layout_players(players: List[Player],
                   responses: Iterable[Any],
                   x_question: Question,
                   y_question: Question,
                   threshold: float = COLLISION_THRESHOLD,
                   radius: float = SPOKE_RADIUS,
                   default_value: float = NEUTRAL_VALUE,
                   nmat: Optional[NamedMatrix] = None) -> QuadrantPlot:
    """
    Place every player on the plot for the chosen pair of questions.

    Players who skipped an axis question are placed at the neutral value on
    that axis.

    Args:
        players: Roster, in display order
        responses: Objects with player_id, question_id and value attributes
        x_question: Question on the horizontal axis
        y_question: Question on the vertical axis
        threshold: Collision distance
        radius: Spoke radius
        default_value: Value used for a missing answer
        nmat: Prebuilt response matrix; responses are ignored when given

    Returns:
        QuadrantPlot with one position per player, in roster order
    """
    if nmat is None:
        nmat = response_matrix([p.id for p in players],
                               [x_question.id, y_question.id],
                               responses)

    positions = []
    for player in players:
        x_value = nmat.get_value(player.id, x_question.id)
        y_value = nmat.get_value(player.id, y_question.id)
        x_value = default_value if x_value is None else x_value
        y_value = default_value if y_value is None else y_value
        positions.append(PlottedPosition(
            player=player,
            x_value=x_value,
            y_value=y_value,
            x=project(x_value, X_AXIS),
            y=project(y_value, Y_AXIS)
        ))

    if positions:
        points = np.array([[pos.x, pos.y] for pos in positions])
        offsets = resolve_collisions(points, threshold, radius)
        for pos, (dx, dy) in zip(positions, offsets):
            pos.offset_x = float(dx)
            pos.offset_y = float(dy)

        logger.debug(f"Placed {len(positions)} players, "
                     f"{int(np.sum(np.any(offsets != 0, axis=1)))} offset")

    return QuadrantPlot(
        x_axis=axis_info(x_question),
        y_axis=axis_info(y_question),
        positions=positions
    )
