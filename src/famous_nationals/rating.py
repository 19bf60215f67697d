"""Elo-style rating updates and rank labels."""

import math
from dataclasses import dataclass

from .data import DEFAULT_RATING, PersonRecord

K_FACTOR = 32

# Difficulty baseline: well-known people (many sitelinks) are easy questions.
DIFFICULTY_MAX = 2000
DIFFICULTY_MIN = 1000
DIFFICULTY_PER_SITELINK = 4

RANKS: tuple[tuple[int, str], ...] = (
  (2400, 'Legendary'),
  (2200, 'Master'),
  (2000, 'Expert'),
  (1800, 'Advanced'),
  (1600, 'Intermediate'),
  (1400, 'Beginner'),
)


def _round_half_up(x: float) -> int:
  return math.floor(x + 0.5)


def expected_score(rating: float, baseline: float) -> float:
  """Expected score of a player at `rating` against a question at `baseline`."""
  return 1 / (1 + 10 ** ((baseline - rating) / 400))


def update_rating(
  rating: int, is_correct: bool, baseline: float = DEFAULT_RATING, k: int = K_FACTOR
) -> int:
  """Return the new integer rating after one answer."""
  actual = 1 if is_correct else 0
  return _round_half_up(rating + k * (actual - expected_score(rating, baseline)))


def difficulty_baseline(sitelinks: int) -> int:
  """Map a sitelinks count to a question difficulty in [1000, 2000]."""
  raw = DIFFICULTY_MAX - DIFFICULTY_PER_SITELINK * max(0, sitelinks)
  return max(DIFFICULTY_MIN, min(DIFFICULTY_MAX, raw))


@dataclass(frozen=True)
class RatingConfig:
  """Which baseline the rating update plays against.

  fixed: every question is rated DEFAULT_RATING
  difficulty: baseline derived from the correct person's sitelinks
  """

  baseline_mode: str = 'fixed'
  k: int = K_FACTOR

  def __post_init__(self) -> None:
    if self.baseline_mode not in ('fixed', 'difficulty'):
      raise ValueError(f'unknown baseline_mode: {self.baseline_mode!r}')

  def baseline_for(self, person: PersonRecord) -> int:
    if self.baseline_mode == 'difficulty':
      return difficulty_baseline(person.sitelinks)
    return DEFAULT_RATING


def rank_for(rating: int) -> str:
  """Rank label shown next to the rating."""
  for floor, label in RANKS:
    if rating >= floor:
      return label
  return 'Novice'
