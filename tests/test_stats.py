import json

from famous_nationals.data import SkillState
from famous_nationals.stats import STATS_KEY, StatsStore, empty_stats, format_summary


def test_empty_store(tmp_path):
  store = StatsStore(str(tmp_path / 'stats.json'))
  stats = store.load()
  assert stats['totalAnswered'] == 0
  assert stats['rating'] == 1500
  assert 'No statistics yet' in format_summary(stats)


def test_record_keeps_watermarks(tmp_path):
  store = StatsStore(str(tmp_path / 'nested' / 'stats.json'))
  store.record(SkillState(rating=1600, streak=4, best_rating=1600, best_streak=4), 'France', True)
  stats = store.record(SkillState(rating=1500, streak=0, best_rating=1500), 'Peru', False)
  assert stats['totalAnswered'] == 2
  assert stats['correctCount'] == 1
  assert stats['bestRating'] == 1600
  assert stats['bestStreak'] == 4
  assert stats['streak'] == 0
  assert stats['countryStats'] == {
    'France': {'answered': 1, 'correct': 1},
    'Peru': {'answered': 1, 'correct': 0},
  }
  on_disk = json.loads((tmp_path / 'nested' / 'stats.json').read_text())
  assert on_disk[STATS_KEY] == stats
  text = format_summary(stats)
  assert 'Accuracy: 50%' in text
  assert 'Best rating: 1600' in text


def test_corrupt_file_treated_as_empty(tmp_path):
  path = tmp_path / 'stats.json'
  path.write_text('{oops')
  events: list[dict] = []
  store = StatsStore(str(path), log=events.append)
  assert store.load()['totalAnswered'] == 0
  assert events[0]['event'] == 'stats_error'


def test_bad_saved_fields_fall_back_to_defaults(tmp_path):
  path = tmp_path / 'stats.json'
  path.write_text(
    json.dumps(
      {
        STATS_KEY: {
          'totalAnswered': 3,
          'bestStreak': None,
          'bestRating': 'high',
          'countryStats': {'Peru': {'answered': None, 'correct': 1}, 'Chad': 7},
        }
      }
    )
  )
  store = StatsStore(str(path))
  loaded = store.load()
  assert loaded['totalAnswered'] == 3
  assert loaded['bestStreak'] == 0
  assert loaded['bestRating'] == 1500
  assert loaded['countryStats'] == {'Peru': {'answered': 0, 'correct': 1}}
  stats = store.record(SkillState(rating=1516, streak=1, best_rating=1516, best_streak=1), 'Peru', True)
  assert stats['totalAnswered'] == 4
  assert stats['bestStreak'] == 1
  assert stats['countryStats']['Peru'] == {'answered': 1, 'correct': 2}


def test_clear_resets_to_empty(tmp_path):
  store = StatsStore(str(tmp_path / 'stats.json'))
  store.record(SkillState(rating=1516, streak=1, best_rating=1516, best_streak=1), 'Peru', True)
  store.clear()
  assert store.load() == empty_stats()
