import os

from famous_nationals.data import AnswerRecord
from famous_nationals.report import country_table, render_report, to_answers
from famous_nationals.stats import empty_stats


def _ans(country: str, ok: bool) -> AnswerRecord:
  return AnswerRecord(
    question_id='q1',
    country=country,
    correct_uri='a',
    chosen_uri='a' if ok else 'b',
    correct_name='A',
    is_correct=ok,
    rating_before=1500,
    rating_after=1516 if ok else 1484,
    baseline=1500,
    mode='image-to-name',
  )


def test_country_table():
  t = country_table([_ans('France', True), _ans('France', False), _ans('Peru', True)])
  assert list(t['country']) == ['France', 'Peru']
  assert list(t['answered']) == [2, 1]
  assert list(t['accuracy']) == [0.5, 1.0]


def test_to_answers_skips_other_events():
  rows = [
    {'event': 'reset', 'reason': 'country'},
    {'event': 'answer', **_ans('Peru', True).__dict__},
    _ans('France', False).__dict__,
  ]
  answers = to_answers(rows)
  assert [a.country for a in answers] == ['Peru', 'France']


def test_render_report(tmp_path):
  out = str(tmp_path / 'out')
  m = render_report(empty_stats(), [_ans('France', True), _ans('Peru', False)], out, 'r1')
  assert m.answered == 2
  for name in ('metrics_r1.json', 'report_r1.md', 'country_accuracy_r1.png'):
    assert os.path.exists(os.path.join(out, name))
  with open(os.path.join(out, 'report_r1.md')) as f:
    assert 'Accuracy by Country' in f.read()


def test_render_report_without_answers(tmp_path):
  render_report(empty_stats(), [], str(tmp_path), 'empty')
  assert os.path.exists(tmp_path / 'report_empty.md')
  assert not os.path.exists(tmp_path / 'country_accuracy_empty.png')
