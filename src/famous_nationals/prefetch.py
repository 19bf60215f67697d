"""Asset prefetcher: resolves option portraits before a question is shown.

A failed image never fails the prefetch; it only means the option renders
without a thumbnail.
"""

import asyncio
from collections.abc import Callable
from typing import Any

from .client import ImageClient
from .data import QuestionSet

IMAGE_TO_NAME = 'image-to-name'
NAME_TO_IMAGE = 'name-to-image'

LogFn = Callable[[dict[str, Any]], None]


def images_for(question: QuestionSet, mode: str | None = None) -> list[str]:
  """Image URIs a question needs in a display mode, in option order, deduped.

  image-to-name shows only the correct portrait; name-to-image shows all four.
  With no mode every option image is returned.
  """
  if mode == IMAGE_TO_NAME:
    people = [question.correct]
  else:
    people = list(question.options)
  out: list[str] = []
  for p in people:
    if p.image and p.image not in out:
      out.append(p.image)
  return out


class AssetPrefetcher:
  """Session-scoped image prefetcher with a resolved-URI set."""

  def __init__(
    self,
    client: ImageClient,
    mode: str | None = None,
    log: LogFn | None = None,
  ) -> None:
    self.client = client
    self.mode = mode
    self.log = log
    # Append-only; stale completions re-adding a URI are harmless.
    self.resolved: set[str] = set()
    self.failed: set[str] = set()

  async def _fetch_one(self, uri: str) -> None:
    try:
      await asyncio.to_thread(self.client.fetch, uri)
    except Exception as e:
      self.failed.add(uri)
      if self.log:
        self.log({'event': 'prefetch_error', 'uri': uri, 'error': str(e)})
    self.resolved.add(uri)

  async def prefetch(self, question: QuestionSet) -> None:
    """Resolve every not-yet-resolved image of `question`; never raises."""
    todo = [u for u in images_for(question, self.mode) if u not in self.resolved]
    if not todo:
      return
    await asyncio.gather(*(self._fetch_one(u) for u in todo))
