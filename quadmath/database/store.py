"""
Response store contract for quadmath.

A ResponseStore supplies quizzes, players and responses to the analytics.
It does no filtering or aggregation beyond lookup by id; the analytics do
all of that in memory.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from quadmath.models import Player, QuizInstance, Response

logger = logging.getLogger(__name__)


class ResponseStore(ABC):
    """
    Source of quizzes, players and responses.
    """

    @abstractmethod
    def get_quiz(self, quad_id: str) -> Optional[QuizInstance]:
        """
        Get a quiz with its questions in order.

        Args:
            quad_id: Quiz ID

        Returns:
            QuizInstance, or None if not found
        """

    @abstractmethod
    def get_players(self, player_ids: List[str]) -> List[Player]:
        """
        Look up players by ID. Unknown IDs are skipped.
        """

    @abstractmethod
    def get_quad_responses(self, quad_id: str) -> List[Response]:
        """
        All responses recorded for a quiz.
        """

    @abstractmethod
    def get_player_responses(self, player_id: str) -> List[Response]:
        """
        All responses recorded by a player, across quizzes.
        """

    @abstractmethod
    def save_quiz(self, quiz: QuizInstance) -> None:
        """
        Insert or replace a quiz and its questions.
        """

    @abstractmethod
    def save_player(self, player: Player) -> None:
        """
        Insert or replace a player.
        """

    @abstractmethod
    def upsert_response(self, response: Response) -> None:
        """
        Record a response, replacing any earlier one for the same
        (player, question, quiz).
        """

    def quad_players(self, quad_id: str) -> List[Player]:
        """
        Players who responded to a quiz, in order of first response.

        Membership is derived from responses; the store keeps no roster.
        A player registered with a quad who has not answered yet is not
        returned, so such players drop off a quad rebuilt from the store.
        """
        player_ids = []
        for response in self.get_quad_responses(quad_id):
            if response.player_id not in player_ids:
                player_ids.append(response.player_id)

        by_id = {p.id: p for p in self.get_players(player_ids)}
        return [by_id[pid] for pid in player_ids if pid in by_id]


class InMemoryResponseStore(ResponseStore):
    """
    ResponseStore kept in dictionaries.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._quizzes: Dict[str, QuizInstance] = {}
        self._players: Dict[str, Player] = {}
        # Keyed by (quad_id, player_id, question_id); dicts keep insertion order
        self._responses: Dict[Tuple[Optional[str], str, str], Response] = {}

    def get_quiz(self, quad_id: str) -> Optional[QuizInstance]:
        with self._lock:
            return self._quizzes.get(quad_id)

    def get_players(self, player_ids: List[str]) -> List[Player]:
        with self._lock:
            return [self._players[pid] for pid in player_ids if pid in self._players]

    def get_quad_responses(self, quad_id: str) -> List[Response]:
        with self._lock:
            return [r for (qid, _, _), r in self._responses.items() if qid == quad_id]

    def get_player_responses(self, player_id: str) -> List[Response]:
        with self._lock:
            return [r for (_, pid, _), r in self._responses.items() if pid == player_id]

    def save_quiz(self, quiz: QuizInstance) -> None:
        with self._lock:
            self._quizzes[quiz.id] = quiz

    def save_player(self, player: Player) -> None:
        with self._lock:
            self._players[player.id] = player

    def upsert_response(self, response: Response) -> None:
        with self._lock:
            key = (response.quad_id, response.player_id, response.question_id)
            self._responses[key] = response
