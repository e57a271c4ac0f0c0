"""
Data model for quizzes, players and responses.

Stored entities (players, questions, responses, quiz instances) and the
derived results computed from them are pydantic models, so the same
objects validate input at the HTTP boundary and serialize back out.
Derived results hold no state of their own; they are recomputed from the
current responses whenever they are requested.
"""

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator


MIN_VALUE = 1.0
MAX_VALUE = 10.0
NEUTRAL_VALUE = 5.5  # Midpoint of the slider range

SOLO_GROUP_ID = 'solo'
SOLO_PLAYER_ID = 'solo-player'

# A single player's answers: question id -> slider value
ResponseVector = Dict[str, float]


class Player(BaseModel):
    """A participant in a group (or the synthetic solo player)."""

    id: str
    name: str
    avatar_url: Optional[str] = None
    group_id: Optional[str] = None


class Question(BaseModel):
    """A slider question; label_left anchors value 1, label_right value 10."""

    id: str
    prompt: str
    label_left: str
    label_right: str
    order: int = 0


class Response(BaseModel):
    """A player's answer to one question."""

    player_id: str
    question_id: str
    value: float = Field(ge=MIN_VALUE, le=MAX_VALUE)
    quad_id: Optional[str] = None


class QuizInstance(BaseModel):
    """A named, ordered set of questions ("quad")."""

    id: str
    name: str
    description: Optional[str] = None
    is_public: bool = False
    group_code: Optional[str] = None
    questions: List[Question] = Field(default_factory=list)

    @field_validator('questions')
    @classmethod
    def _sort_questions(cls, questions: List[Question]) -> List[Question]:
        return sorted(questions, key=lambda q: q.order)

    def question_ids(self) -> List[str]:
        return [q.id for q in self.questions]

    def get_question(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


# Derived results

class PairSuperlative(BaseModel):
    """An award given to a pair of players."""

    kind: str
    players: List[Player]
    score: float
    description: str


class PlayerSuperlative(BaseModel):
    """An award given to a single player."""

    kind: str
    player: Player
    score: float
    description: str


class CorrelationResult(BaseModel):
    """Correlation between two questions across the players who answered both."""

    question_ids: Tuple[str, str]
    coefficient: float
    quadrants: Dict[str, int]
    n_players: int


class CorrelationFinding(BaseModel):
    """A correlation picked for display, with the sentence describing it."""

    question1: Question
    question2: Question
    coefficient: float
    quadrants: Dict[str, int]
    description: str

    @property
    def question_ids(self) -> Tuple[str, str]:
        return (self.question1.id, self.question2.id)


class AxisInfo(BaseModel):
    """Axis metadata for label rendering."""

    question_id: str
    prompt: str
    label_low: str
    label_high: str


class PlottedPosition(BaseModel):
    """A player's marker on the quadrant plot, in percent of the plot size."""

    player: Player
    x_value: float
    y_value: float
    x: float
    y: float
    offset_x: float = 0.0
    offset_y: float = 0.0

    @property
    def final_x(self) -> float:
        return self.x + self.offset_x

    @property
    def final_y(self) -> float:
        return self.y + self.offset_y


class QuadrantPlot(BaseModel):
    """Every player's final position plus the two axes they were placed on."""

    x_axis: AxisInfo
    y_axis: AxisInfo
    positions: List[PlottedPosition]

    def to_dict(self) -> Dict:
        data = self.model_dump()
        for pos_data, pos in zip(data['positions'], self.positions):
            pos_data['final_x'] = pos.final_x
            pos_data['final_y'] = pos.final_y
        return data
