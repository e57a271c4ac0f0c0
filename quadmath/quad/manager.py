"""
Quad manager for handling multiple quads.

This module provides a manager that keeps quads in memory, hydrates them
from a ResponseStore on first access, writes submitted responses through to
the store, and optionally snapshots each quad to a JSON file.
"""

import os
import json
import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

from quadmath.database.store import ResponseStore
from quadmath.models import CorrelationFinding, Player, QuadrantPlot, QuizInstance, Response
from quadmath.quad.quad import Quad


# Logging configuration
logger = logging.getLogger(__name__)


class QuadManager:
    """
    Manages multiple quads.
    """

    def __init__(self,
                 data_dir: Optional[str] = None,
                 store: Optional[ResponseStore] = None,
                 analytics: Optional[Dict[str, Any]] = None,
                 max_players: Optional[int] = None):
        """
        Initialize a quad manager.

        Args:
            data_dir: Directory for storing quad snapshots
            store: Response store to load quads from and write responses to
            analytics: Overrides for the analytics constants
            max_players: Maximum number of players per quad
        """
        self.quads: Dict[str, Quad] = {}
        self.data_dir = data_dir
        self.store = store
        self.analytics = analytics or {}
        self.max_players = max_players
        self.lock = threading.RLock()

        if data_dir and os.path.exists(data_dir):
            self._load_quads()

    def _load_quads(self) -> None:
        """
        Load quads from the data directory.
        """
        logger.info(f"Loading quads from {self.data_dir}")

        with self.lock:
            files = [f for f in os.listdir(self.data_dir)
                     if f.endswith('.json') and os.path.isfile(os.path.join(self.data_dir, f))]

            for file in files:
                try:
                    with open(os.path.join(self.data_dir, file), 'r') as f:
                        data = json.load(f)

                    quad = Quad.from_dict(data)
                    self.quads[quad.quad_id] = quad

                    logger.info(f"Loaded quad {quad.quad_id}")
                except (OSError, ValueError, KeyError) as e:
                    logger.error(f"Error loading quad from {file}: {e}")

        logger.info(f"Loaded {len(self.quads)} quads")

    def _save_quad(self, quad_id: str) -> None:
        """
        Save a quad to the data directory.
        """
        if not self.data_dir:
            return

        os.makedirs(self.data_dir, exist_ok=True)

        with self.lock:
            quad = self.quads.get(quad_id)

            if quad:
                file_path = os.path.join(self.data_dir, f"{quad_id}.json")
                with open(file_path, 'w') as f:
                    json.dump(quad.to_dict(), f)

                logger.info(f"Saved quad {quad_id}")

    def _load_from_store(self, quad_id: str) -> Optional[Quad]:
        if self.store is None:
            return None

        quiz = self.store.get_quiz(quad_id)
        if quiz is None:
            return None

        players = self.store.quad_players(quad_id)
        responses = self.store.get_quad_responses(quad_id)
        logger.info(f"Loaded quad {quad_id} from store: "
                    f"{len(players)} players, {len(responses)} responses")

        return Quad(quiz, players=players, responses=responses, analytics=self.analytics)

    def get_quad(self, quad_id: str) -> Optional[Quad]:
        """
        Get a quad by ID.

        Args:
            quad_id: ID of the quad to get

        Returns:
            Quad object, or None if not found
        """
        with self.lock:
            quad = self.quads.get(quad_id)
            if quad is None:
                quad = self._load_from_store(quad_id)
                if quad is not None:
                    self.quads[quad_id] = quad
            return quad

    def create_quad(self, quiz: QuizInstance) -> Quad:
        """
        Create a new quad.

        Args:
            quiz: Quiz definition

        Returns:
            The created quad, or the existing one with the same ID
        """
        with self.lock:
            existing = self.get_quad(quiz.id)
            if existing is not None:
                return existing

            quad = Quad(quiz, analytics=self.analytics)
            self.quads[quiz.id] = quad

            if self.store is not None:
                self.store.save_quiz(quiz)

            self._save_quad(quiz.id)

            return quad

    def add_player(self, quad_id: str, player: Player) -> Optional[Quad]:
        """
        Register a player with a quad.

        Returns:
            Updated quad, or None if the quad was not found

        Raises:
            ValueError: If the quad is full
        """
        with self.lock:
            quad = self.get_quad(quad_id)
            if quad is None:
                return None

            if (self.max_players is not None and player.id not in quad.players
                    and len(quad.players) >= self.max_players):
                raise ValueError(f"Quad {quad_id} already has {self.max_players} players")

            updated = quad.add_player(player)
            self.quads[quad_id] = updated

            if self.store is not None:
                self.store.save_player(player)

            self._save_quad(quad_id)
            return updated

    def submit_responses(self,
                         quad_id: str,
                         responses: List[Response]) -> Optional[Quad]:
        """
        Record responses for a quad.

        Args:
            quad_id: ID of the quad
            responses: Responses to record

        Returns:
            Updated quad, or None if the quad was not found

        Raises:
            ValueError: If a response refers to a question outside the quiz,
                or new players would take the quad past its roster limit
        """
        with self.lock:
            quad = self.get_quad(quad_id)
            if quad is None:
                return None

            new_ids = {r.player_id for r in responses} - set(quad.players)
            if (self.max_players is not None and new_ids
                    and len(quad.players) + len(new_ids) > self.max_players):
                raise ValueError(f"Quad {quad_id} cannot take {len(new_ids)} more players "
                                 f"(limit {self.max_players})")

            responses = [r.model_copy(update={'quad_id': quad_id}) for r in responses]
            updated = quad.update_responses(responses)
            self.quads[quad_id] = updated

            if self.store is not None:
                for response in responses:
                    self.store.upsert_response(response)

            self._save_quad(quad_id)
            return updated

    def superlatives(self, quad_id: str) -> Optional[Dict[str, Any]]:
        quad = self.get_quad(quad_id)
        return quad.superlatives() if quad is not None else None

    def find_correlation(self,
                         quad_id: str,
                         exclude_pair: Optional[Tuple[str, str]] = None,
                         rng: Optional[Any] = None) -> Optional[CorrelationFinding]:
        quad = self.get_quad(quad_id)
        return quad.find_correlation(exclude_pair, rng) if quad is not None else None

    def layout(self,
               quad_id: str,
               x_question_id: Optional[str] = None,
               y_question_id: Optional[str] = None) -> Optional[QuadrantPlot]:
        quad = self.get_quad(quad_id)
        return quad.layout(x_question_id, y_question_id) if quad is not None else None

    def get_summary(self) -> Dict[str, Any]:
        """
        Get a summary of all quads in memory.
        """
        with self.lock:
            return {quad_id: quad.get_summary() for quad_id, quad in self.quads.items()}

    def export_quad(self, quad_id: str, filepath: str) -> bool:
        """
        Export a quad to a JSON file.

        Returns:
            True if export was successful, False otherwise
        """
        with self.lock:
            quad = self.get_quad(quad_id)

            if not quad:
                return False

            try:
                with open(filepath, 'w') as f:
                    json.dump(quad.to_dict(), f)
                return True
            except OSError as e:
                logger.error(f"Error exporting quad {quad_id}: {e}")
                return False

    def import_quad(self, filepath: str) -> Optional[str]:
        """
        Import a quad from a JSON file.

        Returns:
            Quad ID if import was successful, None otherwise
        """
        try:
            with open(filepath, 'r') as f:
                data = json.load(f)

            quad = Quad.from_dict(data)
        except (OSError, ValueError, KeyError) as e:
            logger.error(f"Error importing quad: {e}")
            return None

        with self.lock:
            self.quads[quad.quad_id] = quad
            self._save_quad(quad.quad_id)

        return quad.quad_id

    def delete_quad(self, quad_id: str) -> bool:
        """
        Remove a quad from memory and from the data directory.

        Returns:
            True if deletion was successful, False otherwise
        """
        with self.lock:
            if quad_id not in self.quads:
                return False

            del self.quads[quad_id]

            if self.data_dir:
                file_path = os.path.join(self.data_dir, f"{quad_id}.json")
                if os.path.exists(file_path):
                    os.remove(file_path)

            return True
