"""Local key-value persistence of summary stats.

The file holds one key, `quizStats`, with the fields the statistics view
reads. It is written after every answer and is never read back into a live
session's rating.
"""

import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .data import DEFAULT_RATING, SkillState
from .rating import rank_for

STATS_KEY = 'quizStats'

LogFn = Callable[[dict[str, Any]], None]


def _count(v: Any, default: int = 0) -> int:
  """Saved counter as an int; anything else (null, text, bool) is the default."""
  if isinstance(v, int) and not isinstance(v, bool):
    return v
  return default


def empty_stats() -> dict[str, Any]:
  """Stats shown before anything was answered."""
  return {
    'totalAnswered': 0,
    'correctCount': 0,
    'streak': 0,
    'bestStreak': 0,
    'rating': DEFAULT_RATING,
    'bestRating': DEFAULT_RATING,
    'countryStats': {},
  }


class StatsStore:
  """JSON-file key-value store for summary stats."""

  def __init__(self, path: str, log: LogFn | None = None) -> None:
    self.path = Path(path)
    self.log = log

  def _read_all(self) -> dict[str, Any]:
    if not self.path.exists():
      return {}
    try:
      with self.path.open('r', encoding='utf-8') as f:
        data = json.load(f)
    except (OSError, ValueError) as e:
      if self.log:
        self.log({'event': 'stats_error', 'path': str(self.path), 'error': str(e)})
      return {}
    return data if isinstance(data, dict) else {}

  def load(self) -> dict[str, Any]:
    """Return saved stats merged over the empty defaults.

    Fields that are missing or not counters fall back to their defaults.
    """
    stats = empty_stats()
    saved = self._read_all().get(STATS_KEY)
    if not isinstance(saved, dict):
      return stats
    for key, default in stats.items():
      if isinstance(default, int):
        stats[key] = _count(saved.get(key), default)
    country_stats = saved.get('countryStats')
    if isinstance(country_stats, dict):
      stats['countryStats'] = {
        str(c): {
          'answered': _count(b.get('answered')),
          'correct': _count(b.get('correct')),
        }
        for c, b in country_stats.items()
        if isinstance(b, dict)
      }
    return stats

  def record(self, state: SkillState, country: str, correct: bool) -> dict[str, Any]:
    """Write the stats after one answer and return them.

    Watermarks only go up; the live rating and streak are copied as-is.
    """
    prev = self.load()
    country_stats = prev['countryStats']
    bucket = country_stats.get(country) or {'answered': 0, 'correct': 0}
    bucket['answered'] += 1
    bucket['correct'] += 1 if correct else 0
    country_stats[country] = bucket
    stats = {
      'totalAnswered': prev['totalAnswered'] + 1,
      'correctCount': prev['correctCount'] + (1 if correct else 0),
      'streak': state.streak,
      'bestStreak': max(prev['bestStreak'], state.best_streak, state.streak),
      'rating': state.rating,
      'bestRating': max(prev['bestRating'], state.best_rating, state.rating),
      'countryStats': country_stats,
    }
    self._write(stats)
    return stats

  def _write(self, stats: dict[str, Any]) -> None:
    data = self._read_all()
    data[STATS_KEY] = stats
    self.path.parent.mkdir(parents=True, exist_ok=True)
    tmp = self.path.with_suffix(self.path.suffix + '.tmp')
    with tmp.open('w', encoding='utf-8') as f:
      json.dump(data, f, indent=2)
    os.replace(tmp, self.path)

  def clear(self) -> None:
    self._write(empty_stats())


def accuracy_pct(stats: dict[str, Any]) -> int:
  total = int(stats.get('totalAnswered', 0))
  if total == 0:
    return 0
  return round(int(stats.get('correctCount', 0)) / total * 100)


def format_summary(stats: dict[str, Any]) -> str:
  """Return a human-readable summary of saved stats."""
  total = int(stats.get('totalAnswered', 0))
  if total == 0:
    return 'No statistics yet. Start playing the quiz to track your progress!'
  rating = int(stats.get('rating', DEFAULT_RATING))
  best_rating = int(stats.get('bestRating', rating))
  lines = [
    f'Questions answered: {total}',
    f'Correct answers: {stats.get("correctCount", 0)}',
    f'Accuracy: {accuracy_pct(stats)}%',
    f'Current streak: {stats.get("streak", 0)} (best {stats.get("bestStreak", 0)})',
    f'Rating: {rating} {rank_for(rating)}',
  ]
  if best_rating > rating:
    lines.append(f'Best rating: {best_rating}')
  return '\n'.join(lines)
