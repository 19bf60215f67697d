"""Grading utilities: answer evaluation, skill updates, and aggregate metrics."""

import json
from dataclasses import dataclass, replace

from .data import AnswerRecord, PersonRecord, QuestionSet, SkillState
from .rating import RatingConfig, update_rating
from .store import normalize_answer


def is_correct(question: QuestionSet, chosen: PersonRecord) -> bool:
  """Identity match on source entity URI; names are never compared."""
  return chosen.source_entity_uri == question.correct.source_entity_uri


def is_typed_answer_correct(text: str, person: PersonRecord) -> bool:
  """Free-text answer check used by the typed-answer mode."""
  if not text.strip() or not person.answer_key:
    return False
  return normalize_answer(text) == person.answer_key


def apply_answer(
  state: SkillState, correct: bool, baseline: float, k: int
) -> SkillState:
  """Return the skill state after one answer; `state` is left untouched."""
  rating = update_rating(state.rating, correct, baseline, k)
  streak = state.streak + 1 if correct else 0
  return replace(
    state,
    rating=rating,
    streak=streak,
    total_answered=state.total_answered + 1,
    correct_count=state.correct_count + (1 if correct else 0),
    best_rating=max(state.best_rating, rating),
    best_streak=max(state.best_streak, streak),
  )


@dataclass
class SubmitResult:
  """Outcome of a scored submission."""

  is_correct: bool
  state: SkillState
  baseline: float
  delta: int


class AnswerEvaluator:
  """Scores one answer per question and rejects resubmission."""

  def __init__(self, rating: RatingConfig | None = None) -> None:
    self.rating = rating or RatingConfig()
    self.answered = False

  def reset(self) -> None:
    """Allow the next question to be answered."""
    self.answered = False

  def points_for_correct(self, state: SkillState, question: QuestionSet) -> int:
    """Rating gain a correct answer to `question` would earn right now."""
    baseline = self.rating.baseline_for(question.correct)
    return update_rating(state.rating, True, baseline, self.rating.k) - state.rating

  def submit(
    self, question: QuestionSet, chosen: PersonRecord, state: SkillState
  ) -> SubmitResult | None:
    """Score `chosen` against `question`.

    Returns None (and changes nothing) if this question was already answered.

    Raises:
      ValueError: if `chosen` is not one of the question's options.
    """
    if self.answered:
      return None
    if all(
      p.source_entity_uri != chosen.source_entity_uri for p in question.options
    ):
      raise ValueError(f'{chosen.source_entity_uri} is not an option')
    self.answered = True
    ok = is_correct(question, chosen)
    baseline = self.rating.baseline_for(question.correct)
    new_state = apply_answer(state, ok, baseline, self.rating.k)
    return SubmitResult(
      is_correct=ok,
      state=new_state,
      baseline=baseline,
      delta=new_state.rating - state.rating,
    )


# -----------------------
# Aggregates
# -----------------------


@dataclass
class Metrics:
  """Aggregated metrics over an answers log."""

  answered: int
  accuracy: float
  final_rating: int | None
  by_country: dict[str, dict[str, float]]


def aggregate(answers: list[AnswerRecord]) -> Metrics:
  """Compute overall accuracy and per-country accuracy."""
  total = len(answers)
  acc = sum(1 for a in answers if a.is_correct) / total if total else 0.0
  by_c: dict[str, list[bool]] = {}
  for a in answers:
    by_c.setdefault(a.country or 'unknown', []).append(a.is_correct)
  by_country = {
    c: {'answered': float(len(v)), 'accuracy': sum(v) / len(v)}
    for c, v in by_c.items()
  }
  return Metrics(
    answered=total,
    accuracy=acc,
    final_rating=answers[-1].rating_after if answers else None,
    by_country=by_country,
  )


def dump_metrics(metrics: Metrics, path: str) -> None:
  """Write metrics JSON to disk."""
  with open(path, 'w') as f:
    json.dump(
      {
        'answered': metrics.answered,
        'accuracy': metrics.accuracy,
        'final_rating': metrics.final_rating,
        'by_country': metrics.by_country,
      },
      f,
      indent=2,
    )
