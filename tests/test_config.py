import pytest

from famous_nationals.config import load_config, parse_auto_advance


def test_defaults(monkeypatch):
  for var in ('FN_QUEUE_DEPTH', 'FN_AUTO_ADVANCE', 'FN_RATING_BASELINE', 'FN_SEED'):
    monkeypatch.delenv(var, raising=False)
  cfg = load_config()
  assert cfg.queue_depth == 5
  assert cfg.auto_advance == 2
  assert cfg.rating_baseline == 'fixed'
  assert cfg.seed is None


def test_overrides(monkeypatch):
  monkeypatch.setenv('FN_QUEUE_DEPTH', '2')
  monkeypatch.setenv('FN_AUTO_ADVANCE', 'manual')
  monkeypatch.setenv('FN_RATING_BASELINE', 'difficulty')
  monkeypatch.setenv('FN_SEED', '7')
  cfg = load_config()
  assert (cfg.queue_depth, cfg.auto_advance, cfg.rating_baseline, cfg.seed) == (
    2,
    None,
    'difficulty',
    7,
  )


@pytest.mark.parametrize(
  'var,value',
  [('FN_QUEUE_DEPTH', '9'), ('FN_QUEUE_DEPTH', 'x'), ('FN_RATING_BASELINE', 'fancy'), ('FN_AUTO_ADVANCE', '7')],
)
def test_bad_values(monkeypatch, var, value):
  monkeypatch.setenv(var, value)
  with pytest.raises(ValueError):
    load_config()


def test_parse_auto_advance():
  assert parse_auto_advance('3') == 3
  assert parse_auto_advance('Manual') is None
  assert parse_auto_advance(None) == 2
