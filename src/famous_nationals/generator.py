"""
Question generator: one correct person plus three distractors, shuffled.

Key points:
- Options are distinct by source entity URI, never by per-country id
- Rejection sampling is capped; past the cap a deterministic scan finishes the pick
- Option order uses a Fisher-Yates shuffle
- Deterministic under a seeded random.Random
"""

import hashlib
import random
from dataclasses import dataclass
from collections.abc import MutableSequence, Sequence

from .data import PersonRecord, QuestionSet

NUM_OPTIONS = 4
NUM_DISTRACTORS = NUM_OPTIONS - 1

# -----------------------
# Config
# -----------------------


@dataclass
class GenConfig:
  """Configuration for question generation.

  seed: RNG seed for determinism (None draws from system entropy)
  num_questions: number of questions to emit in a batch
  max_attempts: rejection-sampling draws before falling back to a scan
  """

  seed: int | None = 42
  num_questions: int = 10
  max_attempts: int = 100


# -----------------------
# Helpers
# -----------------------


def shuffle(items: MutableSequence, rng: random.Random) -> None:
  """In-place Fisher-Yates shuffle."""
  for i in range(len(items) - 1, 0, -1):
    j = rng.randint(0, i)
    items[i], items[j] = items[j], items[i]


def _scan_distractors(
  pool: Sequence[PersonRecord],
  rng: random.Random,
  seen: set[str],
  picked: list[PersonRecord],
) -> None:
  """Walk the pool from a random offset and take the first unseen identities."""
  n = len(pool)
  start = rng.randrange(n)
  for k in range(n):
    if len(picked) == NUM_DISTRACTORS:
      return
    cand = pool[(start + k) % n]
    if cand.source_entity_uri not in seen:
      seen.add(cand.source_entity_uri)
      picked.append(cand)


# -----------------------
# Public API
# -----------------------


def generate(
  pool: Sequence[PersonRecord],
  rng: random.Random | None = None,
  max_attempts: int = 100,
) -> QuestionSet | None:
  """Draw a question from `pool`.

  Returns None when the pool has fewer than four people, or fewer than four
  distinct identities. That is a normal state, not an error.
  """
  if len(pool) < NUM_OPTIONS:
    return None
  rng = rng or random.Random()

  correct = pool[rng.randrange(len(pool))]
  seen = {correct.source_entity_uri}
  distractors: list[PersonRecord] = []

  attempts = 0
  while len(distractors) < NUM_DISTRACTORS and attempts < max_attempts:
    attempts += 1
    cand = pool[rng.randrange(len(pool))]
    if cand.source_entity_uri in seen:
      continue
    seen.add(cand.source_entity_uri)
    distractors.append(cand)

  if len(distractors) < NUM_DISTRACTORS:
    _scan_distractors(pool, rng, seen, distractors)
    if len(distractors) < NUM_DISTRACTORS:
      return None

  options = [correct, *distractors]
  shuffle(options, rng)
  return QuestionSet(correct=correct, options=tuple(options))


def generate_questions(
  pool: Sequence[PersonRecord], cfg: GenConfig
) -> list[QuestionSet]:
  """Generate a batch of questions; stops early if the pool can't supply one."""
  rng = random.Random(cfg.seed)
  out: list[QuestionSet] = []
  for _ in range(cfg.num_questions):
    q = generate(pool, rng, max_attempts=cfg.max_attempts)
    if q is None:
      break
    out.append(q)
  return out


def question_id(question: QuestionSet) -> str:
  """Deterministic id for a question from its option identities and order."""
  raw = '|'.join(p.source_entity_uri for p in question.options)
  raw = f'{question.correct.source_entity_uri}#{raw}'.encode('utf-8')
  return hashlib.sha1(raw).hexdigest()[:16]
