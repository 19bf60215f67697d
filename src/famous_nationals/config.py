"""Configuration loader for the quiz.

Reads environment variables (optionally from .env) and exposes a typed config.
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

BASELINE_MODES = ('fixed', 'difficulty')
MIN_QUEUE_DEPTH = 2
MAX_QUEUE_DEPTH = 5
AUTO_ADVANCE_CHOICES = (1, 2, 3, 4, 5)


@dataclass(frozen=True)
class Config:
  """Holds runtime configuration loaded from environment."""

  data_source: str
  queue_depth: int
  auto_advance: int | None  # seconds; None means manual "next"
  rating_baseline: str
  stats_path: str
  answers_log: str | None
  image_timeout: float
  user_agent: str
  seed: int | None


def _int_env(name: str, default: int) -> int:
  raw = os.getenv(name)
  if raw is None or raw.strip() == '':
    return default
  try:
    return int(raw)
  except ValueError:
    raise ValueError(f'{name} must be an integer, got {raw!r}') from None


def parse_auto_advance(raw: str | None) -> int | None:
  """Parse an auto-advance setting: '1'..'5' seconds or 'manual'."""
  if raw is None or raw.strip() == '':
    return 2
  if raw.strip().lower() in ('manual', 'off', 'none'):
    return None
  try:
    secs = int(raw)
  except ValueError:
    raise ValueError(f'auto-advance must be 1-5 or manual, got {raw!r}') from None
  if secs not in AUTO_ADVANCE_CHOICES:
    raise ValueError(f'auto-advance must be 1-5 or manual, got {raw!r}')
  return secs


def load_config() -> Config:
  """Load configuration from environment variables."""
  depth = _int_env('FN_QUEUE_DEPTH', 5)
  if not MIN_QUEUE_DEPTH <= depth <= MAX_QUEUE_DEPTH:
    raise ValueError(
      f'FN_QUEUE_DEPTH must be {MIN_QUEUE_DEPTH}-{MAX_QUEUE_DEPTH}, got {depth}'
    )
  baseline = os.getenv('FN_RATING_BASELINE', 'fixed').strip().lower()
  if baseline not in BASELINE_MODES:
    raise ValueError(
      f'FN_RATING_BASELINE must be one of {BASELINE_MODES}, got {baseline!r}'
    )
  try:
    timeout = float(os.getenv('FN_IMAGE_TIMEOUT', '10'))
  except ValueError:
    raise ValueError('FN_IMAGE_TIMEOUT must be a number') from None
  seed_raw = os.getenv('FN_SEED')
  return Config(
    data_source=os.getenv('FN_DATA_SOURCE', os.path.join('public', 'data')),
    queue_depth=depth,
    auto_advance=parse_auto_advance(os.getenv('FN_AUTO_ADVANCE')),
    rating_baseline=baseline,
    stats_path=os.path.expanduser(
      os.getenv('FN_STATS_PATH', os.path.join('~', '.famous_nationals', 'stats.json'))
    ),
    answers_log=os.getenv('FN_ANSWERS_LOG') or None,
    image_timeout=timeout,
    user_agent=os.getenv('FN_USER_AGENT', 'FamousNationalsQuiz/2.0'),
    seed=_int_env('FN_SEED', 0) if seed_raw else None,
  )
