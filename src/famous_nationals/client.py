"""Client adapters for fetching portrait images.

Includes a requests-based HTTP client and a local offline stub.
"""

import time
import random
from dataclasses import dataclass, field

import requests

from .config import load_config

# -----------------------
# Types & retry config
# -----------------------


@dataclass
class RetryConfig:
  """Retry/backoff configuration."""

  max_retries: int = 2
  backoff_base: float = 0.8  # exponential base
  backoff_cap: float = 4.0  # seconds max per sleep


def _should_retry(status: int | None) -> bool:
  """Return True if HTTP status suggests a transient failure."""
  if status is None:
    return True
  return status in (408, 425, 429, 500, 502, 503, 504)


@dataclass
class ImageResponse:
  """Outcome of one image fetch."""

  uri: str
  size: int
  attempts: int = 1
  status_code: int | None = None
  content_type: str | None = None


class ImageFetchError(RuntimeError):
  """Raised when an image cannot be fetched."""


# -----------------------
# Base client
# -----------------------


class ImageClient:
  """Abstract image client."""

  def fetch(self, uri: str) -> ImageResponse:
    """Fetch `uri` and return its response summary; raise on failure."""
    raise NotImplementedError


# -----------------------
# HTTP client
# -----------------------


class HttpImageClient(ImageClient):
  """Fetches images over HTTP with retry and backoff."""

  def __init__(
    self,
    timeout: float | None = None,
    user_agent: str | None = None,
    retry: RetryConfig | None = None,
    session: requests.Session | None = None,
  ) -> None:
    """Create a client.

    Args:
      timeout: Per-request timeout in seconds (config default if omitted).
      user_agent: User-Agent header; image hosts reject anonymous clients.
      retry: Retry policy for transient statuses.
      session: Optional shared requests session.
    """
    cfg = load_config()
    self.timeout = timeout if timeout is not None else cfg.image_timeout
    self.user_agent = user_agent or cfg.user_agent
    self.retry = retry or RetryConfig()
    self.session = session or requests.Session()

  def fetch(self, uri: str) -> ImageResponse:
    headers = {'User-Agent': self.user_agent, 'Accept': 'image/*'}
    retry = self.retry
    for attempt in range(1, retry.max_retries + 2):  # attempts = retries + 1
      status = None
      try:
        resp = self.session.get(uri, headers=headers, timeout=self.timeout)
        status = resp.status_code
        resp.raise_for_status()
        return ImageResponse(
          uri=uri,
          size=len(resp.content),
          attempts=attempt,
          status_code=status,
          content_type=resp.headers.get('Content-Type'),
        )
      except requests.RequestException as e:
        if attempt <= retry.max_retries and _should_retry(status):
          sleep = min(
            retry.backoff_cap,
            (retry.backoff_base**attempt) + random.random() * 0.25,
          )
          time.sleep(sleep)
          continue
        raise ImageFetchError(f'{uri}: {e}') from e
    raise ImageFetchError(f'{uri}: retries exhausted')


# -----------------------
# Stub (offline)
# -----------------------


@dataclass
class StubImageClient(ImageClient):
  """Offline client for dev and tests.

  URIs in `failing` raise; every call is recorded in `calls`.
  """

  failing: set[str] = field(default_factory=set)
  delay: float = 0.0
  calls: list[str] = field(default_factory=list)

  def fetch(self, uri: str) -> ImageResponse:
    self.calls.append(uri)
    if self.delay:
      time.sleep(self.delay)
    if uri in self.failing:
      raise ImageFetchError(f'{uri}: stub failure')
    return ImageResponse(uri=uri, size=len(uri), status_code=200)
