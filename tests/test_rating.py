import pytest

from famous_nationals.data import PersonRecord
from famous_nationals.rating import (
  RatingConfig,
  difficulty_baseline,
  expected_score,
  rank_for,
  update_rating,
)


def test_even_match_expected_half():
  assert expected_score(1500, 1500) == 0.5


def test_correct_at_baseline():
  assert update_rating(1500, True, 1500) == 1516


def test_incorrect_at_baseline():
  assert update_rating(1500, False, 1500) == 1484


def test_rating_moves_in_answer_direction():
  for baseline in (1000, 1500, 2000):
    for rating in range(600, 2800, 7):
      assert update_rating(rating, True, baseline) >= rating
      assert update_rating(rating, False, baseline) <= rating


def test_far_ahead_player_gains_nothing():
  assert update_rating(3000, True, 1000) == 3000


def test_ranks():
  assert rank_for(2400) == 'Legendary'
  assert rank_for(2250) == 'Master'
  assert rank_for(2000) == 'Expert'
  assert rank_for(1850) == 'Advanced'
  assert rank_for(1600) == 'Intermediate'
  assert rank_for(1500) == 'Beginner'
  assert rank_for(1399) == 'Novice'


def test_baseline_modes():
  p = PersonRecord(id=1, name='A', source_entity_uri='u', sitelinks=100)
  assert RatingConfig().baseline_for(p) == 1500
  assert RatingConfig(baseline_mode='difficulty').baseline_for(p) == 1600
  assert difficulty_baseline(0) == 2000
  assert difficulty_baseline(10_000) == 1000
  with pytest.raises(ValueError):
    RatingConfig(baseline_mode='sometimes')
