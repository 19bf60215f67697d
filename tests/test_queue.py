import asyncio
import random

import pytest

from famous_nationals.client import StubImageClient
from famous_nationals.data import PersonRecord
from famous_nationals.generator import generate
from famous_nationals.prefetch import IMAGE_TO_NAME, AssetPrefetcher, images_for
from famous_nationals.queue import QuestionQueue


def _pool(n: int = 10, image: bool = True) -> list[PersonRecord]:
  return [
    PersonRecord(
      id=i,
      name=f'Person {i}',
      source_entity_uri=f'http://www.wikidata.org/entity/Q{i}',
      image=f'https://img.example/{i}.jpg' if image else '',
    )
    for i in range(1, n + 1)
  ]


def _queue(depth: int = 3, client: StubImageClient | None = None) -> QuestionQueue:
  pf = AssetPrefetcher(client or StubImageClient())
  return QuestionQueue(pf, target_depth=depth, rng=random.Random(1))


def test_ensure_filled_reaches_target_depth():
  q = _queue(depth=3)
  added = asyncio.run(q.ensure_filled(_pool()))
  assert added == 3
  assert len(q) == 3
  assert q.pending == 0


def test_advance_restores_depth():
  async def run():
    q = _queue(depth=4)
    pool = _pool()
    await q.ensure_filled(pool)
    head = q.head
    q.pop()
    assert len(q) == 3
    await q.ensure_filled(pool)
    assert len(q) == 4
    assert q.head is not head
    new_head = await q.advance(pool)
    assert len(q) == 4
    assert new_head is q.head

  asyncio.run(run())


def test_small_pool_leaves_queue_empty():
  q = _queue()
  assert asyncio.run(q.ensure_filled(_pool(3))) == 0
  assert len(q) == 0


def test_depth_bounds():
  with pytest.raises(ValueError):
    _queue(depth=1)
  with pytest.raises(ValueError):
    _queue(depth=6)


def test_reset_discards_in_flight_fills():
  async def run():
    q = _queue(depth=3, client=StubImageClient(delay=0.05))
    task = asyncio.create_task(q.ensure_filled(_pool()))
    await asyncio.sleep(0.01)
    assert q.pending == 3
    q.reset()
    added = await task
    assert added == 0
    assert len(q) == 0
    assert q.pending == 0

  asyncio.run(run())


def test_failed_images_do_not_block():
  pool = _pool(4)
  client = StubImageClient(failing={p.image for p in pool})
  events: list[dict] = []
  pf = AssetPrefetcher(client, log=events.append)
  question = generate(pool, random.Random(0))
  asyncio.run(pf.prefetch(question))
  assert pf.resolved == {p.image for p in pool}
  assert pf.failed == {p.image for p in pool}
  assert {e['event'] for e in events} == {'prefetch_error'}


def test_resolved_images_not_refetched():
  pool = _pool(4)
  client = StubImageClient()
  pf = AssetPrefetcher(client)
  rng = random.Random(0)
  asyncio.run(pf.prefetch(generate(pool, rng)))
  asyncio.run(pf.prefetch(generate(pool, rng)))
  assert sorted(client.calls) == sorted(p.image for p in pool)


def test_images_for_modes():
  pool = _pool(4)
  question = generate(pool, random.Random(0))
  assert images_for(question, IMAGE_TO_NAME) == [question.correct.image]
  assert len(images_for(question)) == 4
  assert images_for(generate(_pool(4, image=False), random.Random(0))) == []


def test_overlapping_fills_both_wait_for_depth():
  async def run():
    q = _queue(depth=3, client=StubImageClient(delay=0.05))
    pool = _pool()
    first = asyncio.create_task(q.ensure_filled(pool))
    await asyncio.sleep(0.01)
    assert q.pending == 3
    assert await q.ensure_filled(pool) == 0
    assert len(q) == 3
    assert await first == 3

  asyncio.run(run())
