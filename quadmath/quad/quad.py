"""
State and analytics for a single quiz instance ("quad").

A Quad holds the quiz definition, the roster of players and their responses
as a player × question matrix, and exposes the analytics (superlatives,
correlations, quadrant layout) computed from them.
"""

import time
import logging
from copy import deepcopy
from typing import Any, Dict, Iterable, List, Optional, Tuple

from quadmath.math.distance import vectors_by_player
from quadmath.math.corr import SHORTLIST_SIZE, SIGNIFICANCE_THRESHOLD, find_interesting_correlation
from quadmath.math.layout import COLLISION_THRESHOLD, SPOKE_RADIUS, layout_players
from quadmath.math.named_matrix import NamedMatrix
from quadmath.math.superlatives import compute_superlatives
from quadmath.models import (
    NEUTRAL_VALUE, SOLO_GROUP_ID, SOLO_PLAYER_ID, CorrelationFinding, Player,
    QuadrantPlot, QuizInstance, Response, ResponseVector
)


logger = logging.getLogger(__name__)


DEFAULT_ANALYTICS = {
    'neutral-value': NEUTRAL_VALUE,
    'correlation-threshold': SIGNIFICANCE_THRESHOLD,
    'shortlist-size': SHORTLIST_SIZE,
    'collision-threshold': COLLISION_THRESHOLD,
    'spoke-radius': SPOKE_RADIUS,
}


class Quad:
    """
    Manages the state and computation for a quad.
    """

    def __init__(self,
                 quiz: QuizInstance,
                 players: Optional[List[Player]] = None,
                 responses: Optional[Iterable[Response]] = None,
                 analytics: Optional[Dict[str, Any]] = None,
                 last_updated: Optional[int] = None):
        """
        Initialize a quad.

        Args:
            quiz: Quiz definition
            players: Initial roster, in display order
            responses: Initial responses
            analytics: Overrides for the analytics constants
            last_updated: Timestamp of last update (milliseconds since epoch)
        """
        self.quiz = quiz
        self.players: Dict[str, Player] = {}
        self.analytics = dict(DEFAULT_ANALYTICS)
        if analytics:
            self.analytics.update(analytics)
        self.last_updated = last_updated or int(time.time() * 1000)

        self.response_mat = NamedMatrix(colnames=quiz.question_ids())

        for player in players or []:
            self._add_player(player)

        if responses:
            self._apply_responses(list(responses))

    @property
    def quad_id(self) -> str:
        return self.quiz.id

    @property
    def roster(self) -> List[Player]:
        """Players in the order they joined."""
        return list(self.players.values())

    def _add_player(self, player: Player) -> None:
        if player.id not in self.players:
            self.players[player.id] = player
            self.response_mat = self.response_mat.append_rows([player.id])

    def _apply_responses(self, responses: List[Response]) -> None:
        known = set(self.quiz.question_ids())
        for response in responses:
            if response.question_id not in known:
                raise ValueError(
                    f"Question {response.question_id} is not part of quad {self.quad_id}"
                )

        for response in responses:
            if response.player_id not in self.players:
                # Responses can arrive before the player directory is loaded
                self._add_player(Player(id=response.player_id, name=response.player_id))

        self.response_mat = self.response_mat.update_many(
            [(r.player_id, r.question_id, r.value) for r in responses]
        )

    def add_player(self, player: Player) -> 'Quad':
        """
        Add a player to the roster.

        Returns:
            Updated quad
        """
        result = deepcopy(self)
        result._add_player(player)
        result.last_updated = int(time.time() * 1000)
        return result

    def update_responses(self, responses: Iterable[Response]) -> 'Quad':
        """
        Record responses, replacing any earlier answer to the same question.

        Args:
            responses: Responses to record

        Returns:
            Updated quad

        Raises:
            ValueError: If a response refers to a question outside the quiz
        """
        responses = list(responses)
        result = deepcopy(self)

        if not responses:
            return result

        result._apply_responses(responses)
        result.last_updated = int(time.time() * 1000)

        logger.info(f"Recorded {len(responses)} responses for quad {self.quad_id}")
        return result

    def responses(self) -> List[Response]:
        """All recorded responses, by player then question."""
        result = []
        for player_id in self.response_mat.rownames():
            for question_id, value in self.response_mat.row_dict(player_id).items():
                result.append(Response(player_id=player_id,
                                       question_id=question_id,
                                       value=value,
                                       quad_id=self.quad_id))
        return result

    def response_vectors(self) -> Dict[str, ResponseVector]:
        """Response vector for every player on the roster."""
        vectors = {pid: {} for pid in self.response_mat.rownames()}
        vectors.update(vectors_by_player(self.responses()))
        return vectors

    def players_with_responses(self) -> List[Player]:
        vectors = self.response_vectors()
        return [p for p in self.roster if vectors.get(p.id)]

    def superlatives(self) -> Dict[str, Any]:
        """
        Compute the five awards for this quad.

        Returns:
            Dictionary keyed by award kind; None where there is not enough data
        """
        return compute_superlatives(self.roster,
                                    self.response_vectors(),
                                    self.analytics['neutral-value'])

    def find_correlation(self,
                         exclude_pair: Optional[Tuple[str, str]] = None,
                         rng: Optional[Any] = None) -> Optional[CorrelationFinding]:
        """
        Find a notable correlation between two of this quad's questions.

        Args:
            exclude_pair: Question pair currently on display
            rng: Randomness source for the shortlist pick

        Returns:
            CorrelationFinding, or None
        """
        return find_interesting_correlation(
            self.quiz.questions,
            self.roster,
            self.responses(),
            exclude_pair=exclude_pair,
            rng=rng,
            threshold=self.analytics['correlation-threshold'],
            shortlist_size=int(self.analytics['shortlist-size']),
            center=self.analytics['neutral-value']
        )

    def default_axes(self) -> Optional[Tuple[str, str]]:
        """First question on x, second (or the first again) on y."""
        questions = self.quiz.questions
        if not questions:
            return None
        x_id = questions[0].id
        y_id = questions[1].id if len(questions) > 1 else x_id
        return x_id, y_id

    def layout(self,
               x_question_id: Optional[str] = None,
               y_question_id: Optional[str] = None) -> Optional[QuadrantPlot]:
        """
        Place every player on the quadrant plot.

        Args:
            x_question_id: Question for the horizontal axis
            y_question_id: Question for the vertical axis

        Returns:
            QuadrantPlot, or None when the quiz has no questions or an id is
            unknown
        """
        defaults = self.default_axes()
        if defaults is None:
            return None

        x_question = self.quiz.get_question(x_question_id or defaults[0])
        y_question = self.quiz.get_question(y_question_id or defaults[1])
        if x_question is None or y_question is None:
            return None

        return layout_players(
            self.roster,
            (),
            x_question,
            y_question,
            threshold=self.analytics['collision-threshold'],
            radius=self.analytics['spoke-radius'],
            default_value=self.analytics['neutral-value'],
            nmat=self.response_mat
        )

    def get_summary(self) -> Dict[str, Any]:
        """
        Get a summary of the quad.
        """
        return {
            'quad_id': self.quad_id,
            'name': self.quiz.name,
            'question_count': len(self.quiz.questions),
            'player_count': len(self.players),
            'responding_player_count': len(self.players_with_responses()),
            'last_updated': self.last_updated,
        }

    def get_full_data(self) -> Dict[str, Any]:
        """
        Get the quad with every derived result computed.
        """
        superlatives = {
            kind: award.model_dump() if award is not None else None
            for kind, award in self.superlatives().items()
        }
        plot = self.layout()

        result = self.get_summary()
        result['quiz'] = self.quiz.model_dump()
        result['players'] = [p.model_dump() for p in self.roster]
        result['superlatives'] = superlatives
        result['layout'] = plot.to_dict() if plot is not None else None
        return result

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the quad to a JSON-serializable dictionary.
        """
        return {
            'quad_id': self.quad_id,
            'last_updated': self.last_updated,
            'quiz': self.quiz.model_dump(),
            'players': [p.model_dump() for p in self.roster],
            'responses': [r.model_dump(exclude={'quad_id'}) for r in self.responses()],
            'analytics': dict(self.analytics),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Quad':
        """
        Create a quad from a dictionary produced by to_dict.
        """
        quiz = QuizInstance.model_validate(data['quiz'])
        return cls(
            quiz,
            players=[Player.model_validate(p) for p in data.get('players', [])],
            responses=[Response.model_validate(r) for r in data.get('responses', [])],
            analytics=data.get('analytics'),
            last_updated=data.get('last_updated')
        )

    @classmethod
    def solo(cls,
             quiz: QuizInstance,
             answers: Dict[str, float],
             player_name: Optional[str] = None) -> 'Quad':
        """
        A single-player session outside any group.

        Args:
            quiz: Quiz definition
            answers: Question id -> value
            player_name: Display name; defaults to "You"

        Returns:
            Quad with the synthetic solo player as its only member
        """
        player = Player(id=SOLO_PLAYER_ID, name=player_name or 'You', group_id=SOLO_GROUP_ID)
        responses = [
            Response(player_id=SOLO_PLAYER_ID, question_id=qid, value=value, quad_id=quiz.id)
            for qid, value in answers.items()
        ]
        return cls(quiz, players=[player], responses=responses)
