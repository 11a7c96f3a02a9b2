"""
Civic Foundations questionnaire.

Defines the fixed question set and the AnswerSet normalization rules.

ARCHITECTURAL RULE:
    Question order IS question identity.
    Position 0..9 maps to a fixed named signal; it is never reordered.

    Answer normalization never rejects input. Anything a scale control
    (or an attacker) can produce is coerced into [1, 10].
"""

import math
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple


QUESTIONNAIRE_ID = "Civic Foundations"
ANSWER_COUNT = 10
ANSWER_MIN = 1
ANSWER_MAX = 10

AnswerSet = Tuple[int, ...]


@dataclass(frozen=True)
class Question:
    """
    A single questionnaire item.

    Properties:
        id: 1-based question number as shown to the respondent
        signal: Name of the scoring signal bound to this position
        text: Statement the respondent rates from 1 (disagree) to 10 (agree)
    """

    id: int
    signal: str
    text: str


@dataclass(frozen=True)
class Questionnaire:
    """
    Root container for the fixed question set.

    INVARIANTS:
        - Exactly ANSWER_COUNT questions
        - questions[i].id == i + 1
        - Signal names are unique
    """

    name: str
    questions: Tuple[Question, ...]

    @property
    def signals(self) -> Tuple[str, ...]:
        return tuple(q.signal for q in self.questions)

    def get_question(self, question_id: int) -> Optional[Question]:
        """
        Retrieve a question by its 1-based id.

        Returns:
            Question or None if not found
        """
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def get_by_signal(self, signal: str) -> Optional[Question]:
        for question in self.questions:
            if question.signal == signal:
                return question
        return None


CIVIC_FOUNDATIONS = Questionnaire(
    name=QUESTIONNAIRE_ID,
    questions=(
        Question(1, "government_role",
                 "The federal government should play an active role in solving major national problems, "
                 "even if that means expanding its authority."),
        Question(2, "liberty",
                 "Protecting individual liberty should take precedence over collective outcomes, "
                 "even when collective solutions might be more efficient."),
        Question(3, "markets",
                 "Free markets generally produce better outcomes than government regulation, "
                 "even in essential sectors."),
        Question(4, "safety_net",
                 "A strong social safety net is necessary to ensure basic dignity and stability for all citizens."),
        Question(5, "identity",
                 "A shared national identity, culture, and civic values are essential for a healthy democracy."),
        Question(6, "merit",
                 "Outcomes in society should primarily reflect merit and effort, not enforced equality."),
        Question(7, "free_speech",
                 "Free speech should be protected even when it is offensive, unpopular, or destabilizing."),
        Question(8, "institutions",
                 "America’s core institutions need reform, but not radical dismantling."),
        Question(9, "expertise",
                 "Experts and institutions should guide policy decisions more than public opinion."),
        Question(10, "citizen_voice",
                 "Citizens should have structured, ongoing ways to express their views beyond elections."),
    ),
)


def clamp_answer(value: Any) -> int:
    """
    Coerce a single raw answer into the [1, 10] integer scale.

    Numbers and numeric strings are clamped, then rounded half-up.
    Anything non-numeric (None, "abc", NaN, booleans) becomes ANSWER_MIN.

    Examples:
        0 -> 1, 11 -> 10, -5 -> 1, "7" -> 7, 7.5 -> 8, 10**400 -> 10
    """
    if isinstance(value, bool):
        return ANSWER_MIN
    if isinstance(value, int):
        # ints of any size clamp exactly; float() overflows past ~1e308
        return min(ANSWER_MAX, max(ANSWER_MIN, value))
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return ANSWER_MIN
    if math.isnan(number):
        return ANSWER_MIN
    number = min(float(ANSWER_MAX), max(float(ANSWER_MIN), number))
    return int(math.floor(number + 0.5))


def normalize_answers(answers: Iterable[Any]) -> AnswerSet:
    """
    Produce a valid AnswerSet from arbitrary input.

    Truncates to ANSWER_COUNT entries, pads missing positions with
    ANSWER_MIN, and clamps every value.
    """
    if isinstance(answers, (str, bytes, dict)):
        raw = []
    else:
        try:
            raw = list(answers)
        except TypeError:
            raw = []
    clamped = [clamp_answer(a) for a in raw[:ANSWER_COUNT]]
    clamped.extend([ANSWER_MIN] * (ANSWER_COUNT - len(clamped)))
    return tuple(clamped)
