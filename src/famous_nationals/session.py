"""Quiz session: drives the queue, evaluator and rating across answers.

Handles the Idle/Ready/Answered lifecycle, auto-advance, filter and mode
resets, and structured JSONL logging of every transition.
"""

import asyncio
import enum
import json
import os
import sys
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from .data import AnswerRecord, PersonRecord, QuestionSet, SkillState
from .generator import question_id
from .grader import AnswerEvaluator, SubmitResult
from .prefetch import IMAGE_TO_NAME, NAME_TO_IMAGE, AssetPrefetcher
from .queue import QuestionQueue
from .stats import StatsStore
from .store import ALL, filter_pool

GAME_MODES = (IMAGE_TO_NAME, NAME_TO_IMAGE)


class SessionState(enum.Enum):
  IDLE = 'idle'
  READY = 'ready'
  ANSWERED = 'answered'


# -----------------------
# Logger
# -----------------------


@dataclass(slots=True)
class SessionLogger:
  """Tee logger that writes JSON lines to a file and prints console lines."""

  path: str | None
  enabled: bool = True
  echo: bool = True
  stdout_format: str = 'auto'  # "auto" | "json" | "pretty"
  _fh: Any | None = field(init=False, default=None)
  _t0: float = field(init=False, default_factory=time.time)
  _line_no: int = field(init=False, default=0)
  _use_color: bool = field(init=False, default=False)
  _use_pretty: bool = field(init=False, default=False)

  def __post_init__(self) -> None:
    """Initialize sinks and console mode."""
    if self.enabled and self.path:
      os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
      self._fh = open(self.path, 'a', encoding='utf-8')

    if self.stdout_format == 'pretty':
      self._use_pretty = True
    elif self.stdout_format == 'json':
      self._use_pretty = False
    else:  # auto
      self._use_pretty = sys.stdout.isatty()

    self._use_color = (
      self._use_pretty
      and sys.stdout.isatty()
      and os.environ.get('NO_COLOR') is None
      and os.environ.get('TERM') not in {'dumb', None}
    )

  # ---------- Public API ----------

  def log(self, record: dict[str, Any]) -> None:
    """Emit one record to file as JSONL and, if echoing, to the console."""
    if not self.enabled:
      return
    record = {'ts': round(time.time(), 3), **record}
    line_json = json.dumps(record, ensure_ascii=False)
    if self._fh:
      self._fh.write(line_json + '\n')
      self._fh.flush()
    if not self.echo:
      return
    if self._use_pretty:
      print(self._format_pretty_line(record))
    else:
      print(line_json)
    sys.stdout.flush()

  def close(self) -> None:
    """Close file handle if open."""
    if self._fh:
      self._fh.close()
      self._fh = None

  # ---------- Pretty formatting ----------

  def _format_pretty_line(self, r: dict[str, Any]) -> str:
    self._line_no += 1
    t_rel = self._style(self._since_start(), 'grey')
    n = self._style(f'{self._line_no:04d}', 'grey')

    event = r.get('event', 'info')
    if event == 'answer':
      return self._fmt_answer(n, t_rel, r)
    if event == 'question_ready':
      return f'{n} {t_rel} 🖼  ready {self._style(r.get("question_id", "-"), "cyan")}  queue={r.get("queue", "-")}'
    if event in ('prefetch_error', 'load_error', 'stats_error'):
      err = self._style(str(r.get('error', 'unknown error')), 'red')
      what = r.get('uri') or r.get('country') or r.get('path') or '-'
      return f'{n} {t_rel} 💥 {self._style(event, "red", bold=True)}  {what}  → {err}'
    if event == 'reset':
      return f'{n} {t_rel} 🔄 reset ({r.get("reason", "-")})  country={r.get("country", "-")}  mode={r.get("mode", "-")}'
    if event == 'idle':
      return f'{n} {t_rel} ⏸  idle  pool={r.get("pool", "-")}'
    return f'{n} {t_rel} ℹ️  {json.dumps(r, ensure_ascii=False)}'

  def _fmt_answer(self, n: str, t: str, r: dict[str, Any]) -> str:
    ok = bool(r.get('is_correct'))
    check = self._style('✅' if ok else '❌', 'green' if ok else 'red', bold=True)
    delta = int(r.get('rating_after', 0)) - int(r.get('rating_before', 0))
    sign = '+' if delta >= 0 else ''
    return '  '.join(
      [
        f'{n} {t} {check}',
        f'{self._style(str(r.get("correct_name", "")), "magenta")}',
        f'🌍 {r.get("country", "-")}',
        f'⭐ {r.get("rating_after", "-")} ({sign}{delta})',
        f'🔥 {r.get("streak", 0)}',
      ]
    )

  def _since_start(self) -> str:
    dt = time.time() - self._t0
    if dt < 60:
      return f'+{dt:05.2f}s'
    m, s = divmod(int(dt), 60)
    return f'+{m:02d}m{s:02d}s'

  def _style(self, s: str, color: str, bold: bool = False) -> str:
    """Apply ANSI color/bold if enabled."""
    if not self._use_color:
      return s
    codes = {
      'grey': '90',
      'red': '31',
      'green': '32',
      'yellow': '33',
      'magenta': '35',
      'cyan': '36',
    }
    parts = []
    if bold:
      parts.append('1')
    c = codes.get(color)
    if c:
      parts.append(c)
    if not parts:
      return s
    return f'\033[{";".join(parts)}m{s}\033[0m'


# -----------------------
# Session
# -----------------------


class QuizSession:
  """Endless multiple-choice session over a person pool.

  All mutation happens on the event loop thread. `submit` is synchronous;
  anything that waits on image prefetch is a coroutine.
  """

  def __init__(
    self,
    pool: Sequence[PersonRecord],
    prefetcher: AssetPrefetcher,
    *,
    queue_depth: int = 5,
    auto_advance: float | None = 2,
    mode: str = IMAGE_TO_NAME,
    country: str = ALL,
    evaluator: AnswerEvaluator | None = None,
    queue: QuestionQueue | None = None,
    logger: SessionLogger | None = None,
    stats: StatsStore | None = None,
    answers_sink: Callable[[AnswerRecord], None] | None = None,
    prefetch_by_mode: bool = False,
  ) -> None:
    if mode not in GAME_MODES:
      raise ValueError(f'unknown mode: {mode!r}')
    self.pool = tuple(pool)
    self.prefetcher = prefetcher
    self.queue = queue or QuestionQueue(prefetcher, target_depth=queue_depth)
    self.evaluator = evaluator or AnswerEvaluator()
    self.logger = logger
    self.stats = stats
    self.answers_sink = answers_sink
    self.prefetch_by_mode = prefetch_by_mode
    self.auto_advance = auto_advance
    self.mode = mode
    self.country = country
    self.active_pool = filter_pool(self.pool, country)
    self.state = SessionState.IDLE
    self.skill = SkillState.initial()
    self.current: QuestionSet | None = None
    self.last_answer: PersonRecord | None = None
    self.last_result: SubmitResult | None = None
    self._timer: asyncio.Task | None = None
    self._epoch = 0
    if prefetch_by_mode:
      self.prefetcher.mode = mode

  # ---------- Helpers ----------

  def _log(self, record: dict[str, Any]) -> None:
    if self.logger:
      self.logger.log(record)

  def _show_head(self) -> None:
    """Expose the queue head as the current question, or go idle."""
    head = self.queue.head
    if head is None:
      self.current = None
      self.state = SessionState.IDLE
      self._log({'event': 'idle', 'pool': len(self.active_pool)})
      return
    self.current = head
    self.state = SessionState.READY
    self._log(
      {
        'event': 'question_ready',
        'question_id': question_id(head),
        'queue': len(self.queue),
      }
    )

  def _cancel_timer(self) -> None:
    if self._timer is not None:
      self._timer.cancel()
      self._timer = None

  # ---------- Lifecycle ----------

  def _on_ready(self, epoch: int) -> Callable[[QuestionSet], None]:
    def _ready(_question: QuestionSet) -> None:
      if epoch == self._epoch and self.state is SessionState.IDLE:
        self._show_head()

    return _ready

  async def start(self) -> SessionState:
    """Fill the queue; the first question shows as soon as one slot is ready."""
    epoch = self._epoch
    await self.queue.ensure_filled(self.active_pool, self._on_ready(epoch))
    if epoch == self._epoch and self.state is SessionState.IDLE:
      self._show_head()
    return self.state

  def submit(self, chosen: PersonRecord) -> SubmitResult | None:
    """Answer the current question; ignored unless a question is showing.

    With auto-advance on this must be called from a running event loop.
    """
    if self.state is not SessionState.READY or self.current is None:
      return None
    loop = asyncio.get_running_loop() if self.auto_advance else None
    question = self.current
    before = self.skill
    result = self.evaluator.submit(question, chosen, before)
    if result is None:
      return None
    self.skill = result.state
    self.state = SessionState.ANSWERED
    self.last_answer = chosen
    self.last_result = result

    rec = AnswerRecord(
      question_id=question_id(question),
      country=question.correct.country,
      correct_uri=question.correct.source_entity_uri,
      chosen_uri=chosen.source_entity_uri,
      correct_name=question.correct.name,
      is_correct=result.is_correct,
      rating_before=before.rating,
      rating_after=result.state.rating,
      baseline=result.baseline,
      mode=self.mode,
    )
    self._log({'event': 'answer', **rec.__dict__, 'streak': self.skill.streak})
    if self.answers_sink:
      self.answers_sink(rec)
    if self.stats:
      try:
        self.stats.record(self.skill, question.correct.country, result.is_correct)
      except (OSError, TypeError, ValueError) as e:
        self._log({'event': 'stats_error', 'path': str(self.stats.path), 'error': str(e)})

    if loop is not None:
      self._timer = loop.create_task(
        self._auto_advance(self._epoch, self.auto_advance)
      )
    return result

  async def _auto_advance(self, epoch: int, delay: float) -> None:
    await asyncio.sleep(delay)
    if epoch != self._epoch or self.state is not SessionState.ANSWERED:
      return
    self._timer = None
    await self._advance()

  async def wait_for_advance(self) -> SessionState:
    """Wait for a scheduled auto-advance, if any, to finish."""
    timer = self._timer
    if timer is not None:
      await asyncio.wait({timer})
    return self.state

  async def next(self) -> SessionState:
    """Move past an answered question (the explicit "Next" action)."""
    if self.state is not SessionState.ANSWERED:
      return self.state
    self._cancel_timer()
    await self._advance()
    return self.state

  async def _advance(self) -> None:
    epoch = self._epoch
    self.evaluator.reset()
    self.last_answer = None
    self.last_result = None
    self.queue.pop()
    self.current = None
    if self.queue.head is not None:
      self._show_head()
      await self.queue.ensure_filled(self.active_pool)
      return
    self.state = SessionState.IDLE
    await self.queue.ensure_filled(self.active_pool, self._on_ready(epoch))
    if epoch == self._epoch and self.state is SessionState.IDLE:
      self._show_head()

  # ---------- Resets ----------

  def _reset(self, reason: str) -> None:
    self._cancel_timer()
    self._epoch += 1
    self.queue.reset()
    self.evaluator.reset()
    self.skill = SkillState.initial()
    self.current = None
    self.last_answer = None
    self.last_result = None
    self.state = SessionState.IDLE
    self._log(
      {'event': 'reset', 'reason': reason, 'country': self.country, 'mode': self.mode}
    )

  async def select_country(self, country: str) -> SessionState:
    """Switch the country filter ('all' for every country) and refill."""
    self.country = country
    self.active_pool = filter_pool(self.pool, country)
    self._reset('country')
    return await self.start()

  async def set_mode(self, mode: str) -> SessionState:
    """Switch between image-to-name and name-to-image and refill."""
    if mode not in GAME_MODES:
      raise ValueError(f'unknown mode: {mode!r}')
    self.mode = mode
    if self.prefetch_by_mode:
      self.prefetcher.mode = mode
    self._reset('mode')
    return await self.start()

  def set_auto_advance(self, delay: float | None) -> None:
    """Change the delay for future answers; None means manual "Next"."""
    self.auto_advance = delay

  def close(self) -> None:
    """Cancel any pending auto-advance and invalidate in-flight work."""
    self._cancel_timer()
    self._epoch += 1
    if self.logger:
      self.logger.close()

  # ---------- Views ----------

  def points_if_correct(self) -> int | None:
    if self.current is None:
      return None
    return self.evaluator.points_for_correct(self.skill, self.current)
