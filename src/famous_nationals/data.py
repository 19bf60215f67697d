"""Core data structures for the quiz.

Defines people records, per-country files, question sets and skill state.
"""

import re
from dataclasses import dataclass, field
from typing import Any

DEFAULT_RATING = 1500

_PLACEHOLDER_RE = re.compile(
  r'^(Q\d+|https?://\S*/Q\d+|Unknown \(Q\d+\)|Unknown)$'
)


def is_placeholder_name(name: str) -> bool:
  """True for an entity id, entity URI or `Unknown (Q123)` standing in for a label."""
  return bool(_PLACEHOLDER_RE.match(name.strip()))


def _opt_int(v: Any) -> int | None:
  """Coerce a stored year (int, numeric string, or null) to int or None."""
  if v is None or v == '':
    return None
  try:
    return int(v)
  except (TypeError, ValueError):
    return None


def _opt_str(v: Any) -> str | None:
  if v is None:
    return None
  s = str(v).strip()
  return s or None


@dataclass(frozen=True)
class PersonRecord:
  """One quiz-eligible person.

  `id` is only unique inside its country file; `source_entity_uri` is the
  global identity used for option distinctness and grading.
  """

  id: int
  name: str
  source_entity_uri: str
  image: str = ''
  sitelinks: int = 0
  birth_year: int | None = None
  death_year: int | None = None
  occupation: str | None = None
  answer_key: str = ''
  wikipedia_url: str | None = None
  description: str | None = None
  country: str = ''

  @property
  def has_placeholder_name(self) -> bool:
    """True when the display name is an entity id rather than a real label."""
    return is_placeholder_name(self.name)

  @property
  def display_name(self) -> str:
    if self.has_placeholder_name:
      return f'{self.name} (no label)'
    return self.name

  @property
  def lifespan(self) -> str | None:
    """Render 'birth – death' the way the detail panel shows it."""
    if self.birth_year is None and self.death_year is None:
      return None
    born = str(self.birth_year) if self.birth_year is not None else '?'
    died = str(self.death_year) if self.death_year is not None else ''
    return f'{born} – {died}'.rstrip()

  @classmethod
  def from_dict(cls, row: dict[str, Any], country: str = '') -> 'PersonRecord':
    """Build a record from one stored `people[]` entry."""
    uri = _opt_str(row.get('wikidataUrl')) or ''
    name = _opt_str(row.get('name')) or uri.rsplit('/', 1)[-1] or 'Unknown'
    try:
      sitelinks = max(0, int(row.get('sitelinks') or 0))
    except (TypeError, ValueError):
      sitelinks = 0
    return cls(
      id=int(row.get('id') or 0),
      name=name,
      source_entity_uri=uri,
      image=_opt_str(row.get('image')) or '',
      sitelinks=sitelinks,
      birth_year=_opt_int(row.get('birthYear')),
      death_year=_opt_int(row.get('deathYear')),
      occupation=_opt_str(row.get('occupation')),
      answer_key=_opt_str(row.get('answerKey')) or '',
      wikipedia_url=_opt_str(row.get('wikipediaUrl')),
      description=_opt_str(row.get('description')),
      country=country,
    )


@dataclass
class CountryFile:
  """One country's roster plus metadata."""

  country: str
  country_code: str
  people: list[PersonRecord] = field(default_factory=list)
  flag: str | None = None
  generated: str | None = None
  ranking_metric: str = 'sitelinks'

  @classmethod
  def from_dict(cls, doc: dict[str, Any]) -> 'CountryFile':
    """Parse a stored country JSON document."""
    country = str(doc.get('country') or '')
    people = [PersonRecord.from_dict(r, country) for r in doc.get('people') or []]
    return cls(
      country=country,
      country_code=str(doc.get('countryCode') or ''),
      people=people,
      flag=_opt_str(doc.get('flag')),
      generated=_opt_str(doc.get('generated')),
      ranking_metric=str(doc.get('rankingMetric') or 'sitelinks'),
    )


@dataclass(frozen=True)
class CountryIndexEntry:
  """Row of index.json."""

  name: str
  code: str
  file: str


@dataclass(frozen=True)
class QuestionSet:
  """A correct person and four shuffled options that contain it."""

  correct: PersonRecord
  options: tuple[PersonRecord, ...]

  @property
  def correct_index(self) -> int:
    uri = self.correct.source_entity_uri
    for i, p in enumerate(self.options):
      if p.source_entity_uri == uri:
        return i
    raise ValueError('correct person missing from options')


@dataclass
class SkillState:
  """Running rating, streak and counters for one session."""

  rating: int = DEFAULT_RATING
  streak: int = 0
  total_answered: int = 0
  correct_count: int = 0
  best_rating: int = DEFAULT_RATING
  best_streak: int = 0

  @property
  def accuracy(self) -> int:
    """Whole-percent accuracy; 0 before the first answer."""
    if self.total_answered == 0:
      return 0
    return round(self.correct_count / self.total_answered * 100)

  @classmethod
  def initial(cls) -> 'SkillState':
    return cls()


@dataclass
class AnswerRecord:
  """One scored answer, appended to the answers log."""

  question_id: str
  country: str
  correct_uri: str
  chosen_uri: str
  correct_name: str
  is_correct: bool
  rating_before: int
  rating_after: int
  baseline: float
  mode: str
