"""Review scheduling core for key/value flashcard decks."""

from .deck import Deck
from .errors import DeckError, InvalidStateError, NotFoundError, ValidationError
from .evaluator import Grade, assess_answer, grade_to_outcome
from .models import DeckSnapshot, LearningState, Pair, SchedulingPolicy
from .scheduler import Scheduler

__all__ = [
    "Deck",
    "DeckError",
    "DeckSnapshot",
    "Grade",
    "InvalidStateError",
    "LearningState",
    "NotFoundError",
    "Pair",
    "Scheduler",
    "SchedulingPolicy",
    "ValidationError",
    "assess_answer",
    "grade_to_outcome",
]
