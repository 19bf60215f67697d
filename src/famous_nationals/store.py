"""Person record store: loads country files and exposes the flattened pool.

The pool is a tuple of PersonRecord and is never mutated after load.
"""

import json
import os
import re
import unicodedata
from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import replace
from typing import Any

import requests

from .data import CountryFile, CountryIndexEntry, PersonRecord, is_placeholder_name

ALL = 'all'
INDEX_FILE = 'index.json'

PersonPool = tuple[PersonRecord, ...]
LogFn = Callable[[dict[str, Any]], None]


class DataLoadError(RuntimeError):
  """Raised when the country index itself cannot be read."""


# -----------------------
# Answer keys
# -----------------------


def normalize_answer(text: str) -> str:
  """Strip diacritics and punctuation, lowercase, collapse whitespace."""
  t = unicodedata.normalize('NFD', text.lower())
  t = ''.join(ch for ch in t if not unicodedata.combining(ch))
  t = re.sub(r'[^\w\s]', '', t)
  return re.sub(r'\s+', ' ', t).strip()


def build_answer_key(name: str) -> str:
  """Answer key for a display name; placeholder names get an empty key."""
  if is_placeholder_name(name):
    return ''
  return normalize_answer(name)


# -----------------------
# Pool operations
# -----------------------


def load(country_files: Iterable[CountryFile]) -> PersonPool:
  """Flatten every country's people into one pool stamped with the country."""
  pool: list[PersonRecord] = []
  for cf in country_files:
    if not cf.people:
      continue
    for p in cf.people:
      if p.country != cf.country:
        p = replace(p, country=cf.country)
      pool.append(p)
  return tuple(pool)


def filter_pool(pool: PersonPool, selector: str = ALL) -> PersonPool:
  """Return the whole pool for 'all', else people whose country matches exactly."""
  if selector == ALL:
    return pool
  return tuple(p for p in pool if p.country == selector)


def countries(pool: PersonPool) -> list[tuple[str, int]]:
  """Sorted (country, people count) pairs for the filter menu."""
  counts = Counter(p.country for p in pool)
  return sorted(counts.items())


# -----------------------
# Loading from disk or HTTP
# -----------------------


def _is_url(source: str) -> bool:
  return source.startswith('http://') or source.startswith('https://')


def _read_json(source: str, name: str, timeout: float = 30.0) -> Any:
  if _is_url(source):
    resp = requests.get(f'{source.rstrip("/")}/{name}', timeout=timeout)
    resp.raise_for_status()
    return resp.json()
  with open(os.path.join(source, name), 'r', encoding='utf-8') as f:
    return json.load(f)


def load_index(source: str) -> list[CountryIndexEntry]:
  """Read index.json from a directory or base URL.

  Raises:
    DataLoadError: if the index cannot be fetched or parsed.
  """
  try:
    doc = _read_json(source, INDEX_FILE)
    rows = doc['countries'] if isinstance(doc, dict) else doc
    return [
      CountryIndexEntry(name=r['name'], code=r.get('code', ''), file=r['file'])
      for r in rows
    ]
  except (OSError, ValueError, KeyError, TypeError, requests.RequestException) as e:
    raise DataLoadError(f'cannot load {INDEX_FILE} from {source}: {e}') from e


def load_country_file(source: str, entry: CountryIndexEntry) -> CountryFile:
  """Read and parse one country file."""
  return CountryFile.from_dict(_read_json(source, entry.file))


def load_all(source: str, log: LogFn | None = None) -> list[CountryFile]:
  """Load every country listed in the index; unreadable files are skipped."""
  files: list[CountryFile] = []
  for entry in load_index(source):
    try:
      cf = load_country_file(source, entry)
    except (OSError, ValueError, KeyError, TypeError, requests.RequestException) as e:
      if log:
        log({'event': 'load_error', 'country': entry.name, 'error': str(e)})
      continue
    if not cf.people:
      if log:
        log({'event': 'load_skip', 'country': entry.name, 'reason': 'no people'})
      continue
    files.append(cf)
  return files


def flags_by_country(files: Iterable[CountryFile]) -> dict[str, str]:
  """Map country name to flag URI for files that have one."""
  return {cf.country: cf.flag for cf in files if cf.flag}
