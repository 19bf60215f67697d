"""Reporting utilities for quiz sessions.

Builds per-country accuracy from the answers log, plots it, and writes
Markdown/JSON reports.
"""

import json
import os
from typing import Any

import matplotlib.pyplot as plt
import pandas as pd
from tabulate import tabulate

from .data import AnswerRecord
from .grader import Metrics, aggregate, dump_metrics
from .rating import rank_for
from .stats import accuracy_pct


def load_jsonl(path: str) -> list[dict]:
  """Load JSONL from a file."""
  rows: list[dict] = []
  with open(path, 'r', encoding='utf-8') as f:
    for line in f:
      if line.strip():
        rows.append(json.loads(line))
  return rows


def to_answers(rows: list[dict]) -> list[AnswerRecord]:
  """Convert dict rows to AnswerRecord objects; non-answer events are dropped."""
  out: list[AnswerRecord] = []
  for r in rows:
    if r.get('event', 'answer') != 'answer':
      continue
    out.append(
      AnswerRecord(
        question_id=r['question_id'],
        country=r.get('country', ''),
        correct_uri=r['correct_uri'],
        chosen_uri=r['chosen_uri'],
        correct_name=r.get('correct_name', ''),
        is_correct=bool(r['is_correct']),
        rating_before=int(r['rating_before']),
        rating_after=int(r['rating_after']),
        baseline=float(r.get('baseline', 1500)),
        mode=r.get('mode', ''),
      )
    )
  return out


def answers_frame(answers: list[AnswerRecord]) -> pd.DataFrame:
  """One row per answer, in answer order."""
  cols = ['question_id', 'country', 'correct_name', 'is_correct', 'rating_after']
  if not answers:
    return pd.DataFrame({c: pd.Series(dtype='object') for c in cols})
  return pd.DataFrame([{c: getattr(a, c) for c in cols} for a in answers])


def country_table(answers: list[AnswerRecord]) -> pd.DataFrame:
  """Answered / correct / accuracy per country, most answered first."""
  df = answers_frame(answers)
  if df.empty:
    return pd.DataFrame(columns=['country', 'answered', 'correct', 'accuracy'])
  g = df.groupby('country')['is_correct'].agg(['count', 'sum']).reset_index()
  g.columns = ['country', 'answered', 'correct']
  g['correct'] = g['correct'].astype(int)
  g['accuracy'] = g['correct'] / g['answered']
  return g.sort_values(['answered', 'country'], ascending=[False, True]).reset_index(
    drop=True
  )


def render_report(
  stats: dict[str, Any],
  answers: list[AnswerRecord],
  out_dir: str,
  basename: str = 'report',
) -> Metrics:
  """Aggregate metrics and write the report files.

  Files written:
    metrics_{basename}.json
    country_accuracy_{basename}.png (only if there are answers)
    report_{basename}.md
  """
  os.makedirs(out_dir, exist_ok=True)
  metrics = aggregate(answers)
  dump_metrics(metrics, os.path.join(out_dir, f'metrics_{basename}.json'))

  table = country_table(answers)
  chart_name = f'country_accuracy_{basename}.png'
  if not table.empty:
    plt.figure()
    plt.bar(table['country'], table['accuracy'])
    plt.ylabel('Accuracy')
    plt.ylim(0, 1)
    plt.title('Accuracy by Country')
    plt.xticks(rotation=30, ha='right')
    plt.tight_layout()
    plt.savefig(os.path.join(out_dir, chart_name), dpi=160)
    plt.close()

  rating = int(stats.get('rating', 1500))
  summary = [
    ['Questions answered', stats.get('totalAnswered', 0)],
    ['Correct answers', stats.get('correctCount', 0)],
    ['Accuracy', f'{accuracy_pct(stats)}%'],
    ['Current streak', stats.get('streak', 0)],
    ['Best streak', stats.get('bestStreak', 0)],
    ['Rating', f'{rating} ({rank_for(rating)})'],
    ['Best rating', stats.get('bestRating', rating)],
  ]
  lines = ['# Famous Nationals Statistics\n']
  lines.append(tabulate(summary, headers=['Stat', 'Value'], tablefmt='github'))
  lines.append('')
  if answers:
    lines.append('## This Log\n')
    lines.append(f'**Answers:** {metrics.answered}  ')
    lines.append(f'**Accuracy:** {metrics.accuracy:.3f}  ')
    lines.append(f'**Final rating:** {metrics.final_rating}\n')
    lines.append('## Accuracy by Country\n')
    lines.append(
      tabulate(
        table, headers='keys', tablefmt='github', showindex=False, floatfmt='.3f'
      )
    )
    lines.append(f'\n![Country Accuracy]({chart_name})\n')
  with open(
    os.path.join(out_dir, f'report_{basename}.md'), 'w', encoding='utf-8'
  ) as f:
    f.write('\n'.join(lines))
  return metrics
