"""Famous Nationals command-line interface.

Supports listing countries, sampling questions, playing in the terminal,
and showing or rendering statistics.
"""

import argparse
import asyncio
import datetime
import json
import os
import random
import sys
from collections.abc import Callable

from tabulate import tabulate

from .client import HttpImageClient, ImageClient, StubImageClient
from .config import Config, load_config, parse_auto_advance
from .data import AnswerRecord, CountryFile, QuestionSet
from .generator import GenConfig, generate_questions
from .grader import AnswerEvaluator
from .prefetch import IMAGE_TO_NAME, NAME_TO_IMAGE, AssetPrefetcher
from .queue import QuestionQueue
from .rating import RatingConfig, rank_for
from .report import load_jsonl, render_report, to_answers
from .session import GAME_MODES, QuizSession, SessionLogger, SessionState
from .stats import StatsStore, format_summary
from .store import (
  ALL,
  DataLoadError,
  countries,
  filter_pool,
  flags_by_country,
  load,
  load_all,
)

LETTERS = 'ABCD'


def _timestamp() -> str:
  return datetime.datetime.now().strftime('%Y%m%d_%H%M%S')


def _load_files(cfg: Config, source: str | None) -> list[CountryFile]:
  """Load country files or exit with the load error."""
  src = source or cfg.data_source
  try:
    return load_all(src, log=lambda r: print(json.dumps(r), file=sys.stderr))
  except DataLoadError as e:
    print(f'ERROR: {e}', file=sys.stderr)
    sys.exit(1)


def _make_answer_writer(
  path: str,
) -> tuple[Callable[[AnswerRecord], None], object]:
  """Open the answers JSONL and return (writer, file_handle). Writer flushes each line."""
  os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
  fh = open(path, 'a', encoding='utf-8')

  def _write(a: AnswerRecord) -> None:
    fh.write(json.dumps(a.__dict__, ensure_ascii=False) + '\n')
    fh.flush()

  return _write, fh


def _print_question(q: QuestionSet, mode: str, number: int) -> None:
  print(f'\n#{number}')
  if mode == IMAGE_TO_NAME:
    print(f'Who is this? {q.correct.image or "(no portrait)"}')
    for i, p in enumerate(q.options):
      print(f'  {LETTERS[i]}) {p.display_name}')
  else:
    print(f'Which one is {q.correct.display_name}?')
    for i, p in enumerate(q.options):
      print(f'  {LETTERS[i]}) {p.image or "(no portrait)"}')


def _print_details(q: QuestionSet, flags: dict[str, str]) -> None:
  p = q.correct
  if p.occupation:
    print(f'  {p.occupation}')
  if p.description:
    print(f'  {p.description}')
  if p.lifespan:
    print(f'  {p.lifespan}')
  flag = flags.get(p.country)
  print(f'  {p.country}' + (f'  {flag}' if flag else ''))
  link = p.wikipedia_url or p.source_entity_uri
  if link:
    print(f'  {link}')


def cmd_countries(args: argparse.Namespace) -> None:
  """CLI: list countries and how many people each has."""
  cfg = load_config()
  pool = load(_load_files(cfg, args.data))
  rows = countries(pool)
  print(tabulate(rows, headers=['country', 'people'], tablefmt='github'))
  print(f'\nAll: {len(pool)}')


def cmd_sample(args: argparse.Namespace) -> None:
  """CLI: print a deterministic batch of generated questions."""
  cfg = load_config()
  pool = filter_pool(load(_load_files(cfg, args.data)), args.country)
  qs = generate_questions(pool, GenConfig(seed=args.seed, num_questions=args.n))
  if not qs:
    print(f'Not enough people in {args.country!r} to build a question.')
    return
  for i, q in enumerate(qs, 1):
    opts = ', '.join(
      f'{LETTERS[j]}={p.display_name}{"*" if p is q.correct else ""}'
      for j, p in enumerate(q.options)
    )
    print(f'{i:3d}. [{q.correct.country}] {opts}')


async def _read(prompt: str) -> str:
  try:
    return await asyncio.to_thread(input, prompt)
  except EOFError:
    return 'q'


async def _play(args: argparse.Namespace) -> None:
  cfg = load_config()
  files = _load_files(cfg, args.data)
  pool = load(files)
  flags = flags_by_country(files)
  seed = args.seed if args.seed is not None else cfg.seed

  client: ImageClient = StubImageClient() if args.offline else HttpImageClient()
  logger = SessionLogger(
    args.log or os.path.join('logs', f'play-{_timestamp()}.jsonl'),
    echo=args.verbose,
  )
  prefetcher = AssetPrefetcher(client, log=logger.log)
  queue = QuestionQueue(
    prefetcher,
    target_depth=cfg.queue_depth,
    rng=random.Random(seed) if seed is not None else None,
  )
  writer, fh = (None, None)
  if args.answers or cfg.answers_log:
    writer, fh = _make_answer_writer(args.answers or cfg.answers_log)
  session = QuizSession(
    pool,
    prefetcher,
    queue=queue,
    auto_advance=(
      cfg.auto_advance if args.delay is None else parse_auto_advance(args.delay)
    ),
    mode=args.mode,
    country=args.country,
    evaluator=AnswerEvaluator(RatingConfig(baseline_mode=cfg.rating_baseline)),
    logger=logger,
    stats=StatsStore(cfg.stats_path, log=logger.log),
    answers_sink=writer,
    prefetch_by_mode=args.prefetch_by_mode,
  )
  print(
    'Commands: a-d answer, n next, c <country|all> filter, '
    'm toggle mode, d <1-5|manual> delay, q quit'
  )
  try:
    await session.start()
    while True:
      if session.state is SessionState.IDLE:
        print(f'Not enough people in {session.country!r} to build a question.')
      elif session.state is SessionState.READY and session.current is not None:
        s = session.skill
        print(
          f'{s.rating} {rank_for(s.rating)} | streak {s.streak} | {s.accuracy}%'
        )
        _print_question(session.current, session.mode, s.total_answered + 1)

      cmd = (await _read('> ')).strip()
      if not cmd:
        continue
      head, _, rest = cmd.partition(' ')
      head = head.lower()
      if head == 'q':
        break
      if head == 'c':
        await session.select_country(rest.strip() or ALL)
        continue
      if head == 'm':
        other = NAME_TO_IMAGE if session.mode == IMAGE_TO_NAME else IMAGE_TO_NAME
        await session.set_mode(other)
        continue
      if head == 'd':
        try:
          session.set_auto_advance(parse_auto_advance(rest))
        except ValueError as e:
          print(e)
        continue
      if head == 'n':
        await session.next()
        continue
      if len(head) == 1 and head.upper() in LETTERS and session.current is not None:
        q = session.current
        result = session.submit(q.options[LETTERS.index(head.upper())])
        if result is None:
          continue
        if result.is_correct:
          print(f'Correct (+{result.delta})')
        else:
          print(f'Wrong: {q.correct.display_name} ({result.delta})')
        _print_details(q, flags)
        if session.auto_advance:
          await session.wait_for_advance()
        continue
      print('Unknown command')
  finally:
    session.close()
    if fh:
      fh.close()


def cmd_play(args: argparse.Namespace) -> None:
  """CLI: play the endless quiz in the terminal."""
  try:
    asyncio.run(_play(args))
  except KeyboardInterrupt:
    print()


def cmd_stats(args: argparse.Namespace) -> None:
  """CLI: print saved summary stats."""
  cfg = load_config()
  store = StatsStore(args.path or cfg.stats_path)
  if args.clear:
    store.clear()
    print(f'Cleared statistics in {store.path}')
    return
  print(format_summary(store.load()))


def cmd_report(args: argparse.Namespace) -> None:
  """CLI: render a report from saved stats and an answers log."""
  cfg = load_config()
  stats = StatsStore(args.stats or cfg.stats_path).load()
  answers = to_answers(load_jsonl(args.infile)) if args.infile else []
  out = args.out or os.path.join('reports', _timestamp())
  render_report(stats, answers, out, basename=args.name)
  print(f'Wrote report to {out}')


def main() -> None:
  """Entry point for the famous-nationals CLI."""
  ap = argparse.ArgumentParser(
    prog='famous-nationals', description='Guess-the-notable-person quiz'
  )
  sub = ap.add_subparsers(dest='cmd', required=True)

  c = sub.add_parser('countries', help='List countries in the data set')
  c.add_argument('--data', type=str, default=None, help='Data dir or base URL')
  c.set_defaults(func=cmd_countries)

  s = sub.add_parser('sample', help='Print generated questions')
  s.add_argument('--data', type=str, default=None, help='Data dir or base URL')
  s.add_argument('--n', type=int, default=10, help='Number of questions')
  s.add_argument('--seed', type=int, default=42, help='RNG seed')
  s.add_argument('--country', type=str, default=ALL, help="Country or 'all'")
  s.set_defaults(func=cmd_sample)

  p = sub.add_parser('play', help='Play in the terminal')
  p.add_argument('--data', type=str, default=None, help='Data dir or base URL')
  p.add_argument('--country', type=str, default=ALL, help="Country or 'all'")
  p.add_argument(
    '--mode', type=str, choices=list(GAME_MODES), default=IMAGE_TO_NAME
  )
  p.add_argument(
    '--delay',
    type=str,
    default=None,
    help="Auto-advance seconds (1-5) or 'manual'",
  )
  p.add_argument('--seed', type=int, default=None, help='RNG seed')
  p.add_argument(
    '--offline', action='store_true', help='Do not fetch images over HTTP'
  )
  p.add_argument(
    '--prefetch-by-mode',
    action='store_true',
    help='Only fetch the images the current mode shows',
  )
  p.add_argument('--log', type=str, default=None, help='Session log JSONL')
  p.add_argument('--answers', type=str, default=None, help='Answers JSONL')
  p.add_argument(
    '--verbose', action='store_true', help='Echo session events to stdout'
  )
  p.set_defaults(func=cmd_play)

  st = sub.add_parser('stats', help='Show saved statistics')
  st.add_argument('--path', type=str, default=None, help='Stats file')
  st.add_argument('--clear', action='store_true', help='Reset saved statistics')
  st.set_defaults(func=cmd_stats)

  rp = sub.add_parser('report', help='Render a statistics report')
  rp.add_argument(
    '--in', dest='infile', type=str, default=None, help='Answers JSONL path'
  )
  rp.add_argument('--stats', type=str, default=None, help='Stats file')
  rp.add_argument('--out', type=str, default=None, help='Output directory')
  rp.add_argument('--name', type=str, default='report', help='Report basename')
  rp.set_defaults(func=cmd_report)

  args = ap.parse_args()
  args.func(args)


if __name__ == '__main__':
  main()
