import pytest
import requests

from famous_nationals.client import HttpImageClient, ImageFetchError, RetryConfig

URI = 'https://img.example/1.jpg'


class _Response:
  def __init__(self, status: int) -> None:
    self.status_code = status
    self.content = b'jpeg-bytes'
    self.headers = {'Content-Type': 'image/jpeg'}

  def raise_for_status(self) -> None:
    if self.status_code >= 400:
      raise requests.HTTPError(f'{self.status_code} error')


class _Session:
  """Replays a fixed list of statuses or exceptions, one per request."""

  def __init__(self, outcomes: list) -> None:
    self.outcomes = list(outcomes)
    self.calls = 0

  def get(self, uri, headers=None, timeout=None):
    self.calls += 1
    out = self.outcomes.pop(0)
    if isinstance(out, Exception):
      raise out
    return _Response(out)


def _client(outcomes: list, max_retries: int = 2) -> tuple[HttpImageClient, _Session]:
  session = _Session(outcomes)
  client = HttpImageClient(
    timeout=1,
    user_agent='famous-nationals-tests',
    retry=RetryConfig(max_retries=max_retries, backoff_base=0, backoff_cap=0),
    session=session,
  )
  return client, session


def test_transient_statuses_are_retried():
  for status in (408, 425, 429, 500, 502, 503, 504):
    client, session = _client([status, 200])
    resp = client.fetch(URI)
    assert resp.attempts == 2
    assert resp.status_code == 200
    assert resp.size == len(b'jpeg-bytes')
    assert session.calls == 2


def test_timeout_and_connection_errors_are_retried():
  client, session = _client([requests.Timeout('slow'), requests.ConnectionError('down'), 200])
  assert client.fetch(URI).attempts == 3
  assert session.calls == 3


def test_not_found_is_not_retried():
  client, session = _client([404, 200])
  with pytest.raises(ImageFetchError):
    client.fetch(URI)
  assert session.calls == 1


def test_gives_up_after_max_retries():
  client, session = _client([503, 503, 503, 200])
  with pytest.raises(ImageFetchError):
    client.fetch(URI)
  assert session.calls == 3
