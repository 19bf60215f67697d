"""Question queue: a short FIFO of questions whose images are already resolved.

The head of the queue is the question on screen. Slots are filled
concurrently and each slot joins the queue when its own prefetch finishes.
"""

import asyncio
import random
from collections import deque
from collections.abc import Callable, Sequence

from .config import MAX_QUEUE_DEPTH, MIN_QUEUE_DEPTH
from .data import PersonRecord, QuestionSet
from .generator import generate
from .prefetch import AssetPrefetcher

OnReady = Callable[[QuestionSet], None]


class QuestionQueue:
  """Ready-question FIFO with a target depth of 2..5."""

  def __init__(
    self,
    prefetcher: AssetPrefetcher,
    target_depth: int = 5,
    rng: random.Random | None = None,
    max_attempts: int = 100,
  ) -> None:
    if not MIN_QUEUE_DEPTH <= target_depth <= MAX_QUEUE_DEPTH:
      raise ValueError(
        f'target_depth must be {MIN_QUEUE_DEPTH}-{MAX_QUEUE_DEPTH}, got {target_depth}'
      )
    self.prefetcher = prefetcher
    self.target_depth = target_depth
    self.rng = rng or random.Random()
    self.max_attempts = max_attempts
    self._items: deque[QuestionSet] = deque()
    self._pending = 0
    self._epoch = 0
    self._inflight: set[asyncio.Task] = set()

  def __len__(self) -> int:
    return len(self._items)

  @property
  def head(self) -> QuestionSet | None:
    return self._items[0] if self._items else None

  @property
  def pending(self) -> int:
    """Slots generated but still waiting on their prefetch."""
    return self._pending

  @property
  def epoch(self) -> int:
    return self._epoch

  def reset(self) -> None:
    """Drop every queued question; in-flight fills from before become no-ops."""
    self._items.clear()
    self._pending = 0
    self._epoch += 1
    self._inflight = set()

  async def _fill_slot(
    self, question: QuestionSet, epoch: int, on_ready: OnReady | None
  ) -> None:
    try:
      await self.prefetcher.prefetch(question)
    finally:
      if epoch == self._epoch:
        self._pending -= 1
    if epoch == self._epoch:
      self._items.append(question)
      if on_ready:
        on_ready(question)

  async def ensure_filled(
    self, pool: Sequence[PersonRecord], on_ready: OnReady | None = None
  ) -> int:
    """Top the queue up to the target depth; returns how many were added.

    Adds nothing when the pool cannot produce a question. `on_ready` is called
    as each slot joins the queue, so callers can show the first one early.
    Slots started by an earlier, still running call are awaited too.
    """
    epoch = self._epoch
    added = 0
    while len(self._items) + self._pending < self.target_depth:
      q = generate(pool, self.rng, max_attempts=self.max_attempts)
      if q is None:
        break
      self._pending += 1
      task = asyncio.ensure_future(self._fill_slot(q, epoch, on_ready))
      self._inflight.add(task)
      task.add_done_callback(self._inflight.discard)
      added += 1
    if self._inflight:
      await asyncio.gather(*self._inflight)
    return added if epoch == self._epoch else 0

  def pop(self) -> QuestionSet | None:
    """Remove and return the head without refilling."""
    return self._items.popleft() if self._items else None

  async def advance(self, pool: Sequence[PersonRecord]) -> QuestionSet | None:
    """Drop the answered head, refill one slot, and return the new head."""
    self.pop()
    await self.ensure_filled(pool)
    return self.head
