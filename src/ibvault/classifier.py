"""
Classification Engine: deterministic V1 scoring of the Civic Foundations answers.

    answers -> signals -> candidate scores -> orientation/meaning
                       -> tendencies, tensions

Everything is driven by the static rule tables below. classify() is a pure
fold over those tables: no randomness, no clock, no shared state.

IMPORTANT: The verifier recomputes this function from embedded answers.
Any change to a rule or threshold changes what old result images verify to.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from ibvault import catalog
from ibvault.questionnaire import CIVIC_FOUNDATIONS, AnswerSet, normalize_answers


MAX_TENDENCIES = 6
MIN_TENDENCIES = 4
FALLBACK_MEAN_THRESHOLD = 6


class Threshold(Enum):
    """Threshold predicates applied to a signal value."""

    HIGH = "high"            # x >= 8
    MED_HIGH = "med_high"    # x >= 7
    CENTER = "center"        # 4 <= x <= 6
    MOSTLY_CENTER = "mostly_center"  # center_count >= 6

    def holds(self, value: float) -> bool:
        if self is Threshold.HIGH:
            return value >= 8
        if self is Threshold.MED_HIGH:
            return value >= 7
        if self is Threshold.CENTER:
            return 4 <= value <= 6
        return value >= 6


@dataclass(frozen=True)
class Bonus:
    """
    One row of the candidate scoring table.

    Properties:
        candidate: Orientation label receiving the points
        signal: Signal name the predicate reads
        threshold: Predicate applied to the signal
        points: Points added when the (possibly negated) predicate holds
        negate: Award points when the predicate does NOT hold
    """

    candidate: str
    signal: str
    threshold: Threshold
    points: int
    negate: bool = False

    def applies(self, signals: Mapping[str, float]) -> bool:
        return self.threshold.holds(signals[self.signal]) != self.negate


@dataclass(frozen=True)
class TendencyRule:
    signal: str
    threshold: Threshold
    sentence: str


@dataclass(frozen=True)
class TensionRule:
    """A signal pair reported as a directional or balanced tension."""

    left: str
    right: str
    left_leaning: str
    right_leaning: str
    balanced: str
    min_gap: float = 3


SCORING_TABLE: Tuple[Bonus, ...] = (
    Bonus(catalog.HYBRID, "institutional", Threshold.HIGH, 2),
    Bonus(catalog.HYBRID, "participatory", Threshold.HIGH, 2),
    Bonus(catalog.HYBRID, "communitarian", Threshold.MED_HIGH, 1),

    Bonus(catalog.STEWARD, "institutional", Threshold.HIGH, 3),
    Bonus(catalog.STEWARD, "participatory", Threshold.HIGH, 1, negate=True),
    Bonus(catalog.STEWARD, "expertise", Threshold.MED_HIGH, 1),

    Bonus(catalog.PARTICIPATION, "participatory", Threshold.HIGH, 3),
    Bonus(catalog.PARTICIPATION, "institutional", Threshold.HIGH, 1, negate=True),
    Bonus(catalog.PARTICIPATION, "government_role", Threshold.MED_HIGH, 1),

    Bonus(catalog.COHESION, "communitarian", Threshold.HIGH, 2),
    Bonus(catalog.COHESION, "safety_net", Threshold.HIGH, 2),
    Bonus(catalog.COHESION, "institutional", Threshold.MED_HIGH, 1),

    Bonus(catalog.BALANCE, "center_count", Threshold.MOSTLY_CENTER, 3),
    Bonus(catalog.BALANCE, "institutional", Threshold.CENTER, 1),
    Bonus(catalog.BALANCE, "participatory", Threshold.CENTER, 1),
)

# Checked in order; every rule that holds contributes its sentence.
TENDENCY_RULES: Tuple[TendencyRule, ...] = (
    TendencyRule("participatory", Threshold.HIGH, catalog.PARTICIPATORY_HIGH),
    TendencyRule("institutional", Threshold.HIGH, catalog.INSTITUTIONAL_HIGH),
    TendencyRule("communitarian", Threshold.HIGH, catalog.COMMUNITARIAN_HIGH),
    TendencyRule("safety_net", Threshold.HIGH, catalog.SAFETY_NET_HIGH),

    TendencyRule("markets", Threshold.MED_HIGH, catalog.MARKETS_MED_HIGH),
    TendencyRule("liberty", Threshold.MED_HIGH, catalog.LIBERTY_MED_HIGH),
    TendencyRule("free_speech", Threshold.MED_HIGH, catalog.SPEECH_MED_HIGH),
    TendencyRule("merit", Threshold.MED_HIGH, catalog.MERIT_MED_HIGH),

    TendencyRule("center_count", Threshold.MOSTLY_CENTER, catalog.MANY_CENTER),
    TendencyRule("expertise", Threshold.CENTER, catalog.EXPERTISE_CENTER),
    TendencyRule("liberty", Threshold.CENTER, catalog.LIBERTY_CENTER),
)

TENSION_RULES: Tuple[TensionRule, ...] = (
    TensionRule(
        "institutional", "participatory",
        catalog.INSTITUTIONS_OVER_VOICE,
        catalog.VOICE_OVER_INSTITUTIONS,
        catalog.INSTITUTIONS_VOICE_BALANCED,
    ),
    TensionRule(
        "markets", "safety_net",
        catalog.MARKETS_OVER_SAFETY_NET,
        catalog.SAFETY_NET_OVER_MARKETS,
        catalog.MARKETS_SAFETY_NET_BALANCED,
    ),
)


@dataclass(frozen=True)
class Analysis:
    """
    Derived classification of one AnswerSet.

    Only orientation, meaning and tendencies are embedded and verified.
    tensions and signals are display/diagnostic output.
    """

    orientation: str
    meaning: str
    tendencies: Tuple[str, ...]
    tensions: Tuple[str, ...]
    signals: Dict[str, float] = field(default_factory=dict)


def derive_signals(answers: AnswerSet) -> Dict[str, float]:
    """
    Bind answer positions to named signals and add the derived ones.

    Derived:
        institutional = (institutions + expertise) / 2
        participatory = citizen_voice
        communitarian = identity
        center_count  = number of answers in [4, 6]
    """
    signals: Dict[str, float] = dict(zip(CIVIC_FOUNDATIONS.signals, answers))
    signals["institutional"] = (signals["institutions"] + signals["expertise"]) / 2
    signals["participatory"] = signals["citizen_voice"]
    signals["communitarian"] = signals["identity"]
    signals["center_count"] = sum(1 for a in answers if Threshold.CENTER.holds(a))
    return signals


def _score(signals: Mapping[str, float]) -> Dict[str, int]:
    scores = {name: 0 for name in catalog.CANDIDATE_ORDER}
    for bonus in SCORING_TABLE:
        if bonus.applies(signals):
            scores[bonus.candidate] += bonus.points
    return scores


def score_candidates(answers: Iterable[Any]) -> Dict[str, int]:
    """Score every candidate orientation; keys follow declaration order."""
    return _score(derive_signals(normalize_answers(answers)))


def _select(scores: Mapping[str, int]) -> str:
    # max() keeps the first maximal element, i.e. the first-declared candidate.
    return max(catalog.CANDIDATE_ORDER, key=lambda name: scores[name])


def _fallback_order(answers: AnswerSet) -> Tuple[str, ...]:
    mean = sum(answers) / len(answers)
    if mean >= FALLBACK_MEAN_THRESHOLD:
        return (catalog.FALLBACK_PRAGMATIC, catalog.FALLBACK_CIVIC_HEALTH, catalog.FALLBACK_TRADEOFFS)
    return (catalog.FALLBACK_TRADEOFFS, catalog.FALLBACK_CIVIC_HEALTH, catalog.FALLBACK_PRAGMATIC)


def _tendencies(answers: AnswerSet, signals: Mapping[str, float]) -> Tuple[str, ...]:
    tendencies: List[str] = [
        rule.sentence for rule in TENDENCY_RULES if rule.threshold.holds(signals[rule.signal])
    ]
    for sentence in _fallback_order(answers):
        if len(tendencies) >= MIN_TENDENCIES:
            break
        if sentence not in tendencies:
            tendencies.append(sentence)
    return tuple(tendencies[:MAX_TENDENCIES])


def _tensions(signals: Mapping[str, float]) -> Tuple[str, ...]:
    tensions = []
    for rule in TENSION_RULES:
        left, right = signals[rule.left], signals[rule.right]
        if abs(left - right) >= rule.min_gap:
            tensions.append(rule.left_leaning if left > right else rule.right_leaning)
        else:
            tensions.append(rule.balanced)
    return tuple(tensions)


def classify(answers: Iterable[Any]) -> Analysis:
    """
    Classify a set of questionnaire answers.

    Args:
        answers: Ten answers on the 1-10 scale. Re-clamped here, so raw
            control values, strings and out-of-range numbers are accepted.

    Returns:
        Analysis with orientation, meaning, tendencies, exactly 2 tensions
        and the signal map.

    Tendencies:
        Rule sentences in table order, truncated to MAX_TENDENCIES. Fewer
        than MIN_TENDENCIES are padded from the three fallback sentences,
        mean-gated one first, skipping any already present. Consequences:
            - a profile with no rule hits (e.g. all 1s) ends with only 3
            - a mean >= 6 profile can still receive the tradeoffs sentence,
              as the last of the three fallbacks
    """
    normalized = normalize_answers(answers)
    signals = derive_signals(normalized)

    orientation = _select(_score(signals))
    if orientation == catalog.HYBRID and Threshold.HIGH.holds(signals["communitarian"]):
        orientation = catalog.HYBRID_COHESION

    return Analysis(
        orientation=orientation,
        meaning=catalog.MEANINGS[orientation],
        tendencies=_tendencies(normalized, signals),
        tensions=_tensions(signals),
        signals=signals,
    )
