# app/api/statistics/test_statistics_service.py
from datetime import date, datetime, timezone

import pytest

from app.api.statistics.services import StatisticsService, calculate_streak
from app.core.exceptions import NetworkFailure
from app.models.geo import Coordinate
from app.services.memory_store import InMemoryDocumentStore

TODAY = date(2024, 3, 10)


def ms(year, month, day):
    return int(datetime(year, month, day, 12, tzinfo=timezone.utc).timestamp() * 1000)


class FailingQueryStore(InMemoryDocumentStore):
    def query(self, collection, filters=None, order_by=None, descending=False, limit=None):
        raise NetworkFailure("offline")


@pytest.fixture
def seeded_store():
    store = InMemoryDocumentStore()
    posts = [
        ('p1', ms(2024, 3, 10), 10, 'Yarkon Park', Coordinate(32.1, 34.8)),
        ('p2', ms(2024, 3, 9), 20, 'Yarkon Park', Coordinate(32.1, 34.8)),
        ('p3', ms(2024, 3, 8), 5, 'Beach', Coordinate(32.08, 34.76)),
        ('p4', ms(2024, 3, 1), 0, None, None),
        ('p5', ms(2024, 2, 15), 25, None, None),
    ]
    for post_id, timestamp, likes, location_name, location in posts:
        doc = {'userId': 'u1', 'text': post_id, 'timestamp': timestamp, 'likes': likes, 'likedBy': []}
        if location is not None:
            doc['location'] = location
            doc['locationName'] = location_name
        store.set('posts', post_id, doc)
    store.set('posts', 'other', {'userId': 'u2', 'text': 'x', 'timestamp': ms(2024, 3, 10), 'likes': 99})
    return store


def test_statistics_summary(seeded_store):
    stats = StatisticsService(seeded_store).get_statistics('u1', today=TODAY)

    assert stats.total_posts == 5
    assert stats.total_likes == 60
    assert stats.average_likes_per_post == 12.0
    assert stats.geotagged_posts == 3
    assert stats.active_days_this_month == 4
    assert stats.streak_days == 3
    assert stats.favorite_location == 'Yarkon Park'


def test_monthly_breakdown_newest_first(seeded_store):
    monthly = StatisticsService(seeded_store).get_statistics('u1', today=TODAY).monthly
    assert [(m.month, m.posts_count, m.likes_received, m.active_days) for m in monthly] == [
        ('2024-03', 4, 35, 4),
        ('2024-02', 1, 25, 1),
    ]


def test_achievements(seeded_store):
    achievements = {a.code: a.is_unlocked for a in StatisticsService(seeded_store).get_statistics('u1', today=TODAY).achievements}
    assert achievements == {
        'FIRST_POST': True,
        'ACTIVE_USER': False,
        'POPULAR_POSTS': True,
        'EXPLORER': False,
    }


def test_user_without_posts():
    stats = StatisticsService(InMemoryDocumentStore()).get_statistics('nobody', today=TODAY)
    assert (stats.total_posts, stats.average_likes_per_post, stats.streak_days) == (0, 0.0, 0)
    assert stats.favorite_location is None
    assert stats.monthly == []
    assert not any(a.is_unlocked for a in stats.achievements)


def test_store_failure_returns_empty_statistics():
    stats = StatisticsService(FailingQueryStore()).get_statistics('u1', today=TODAY)
    assert stats.total_posts == 0
    assert len(stats.achievements) == 4


def test_streak_counts_from_yesterday_when_nothing_posted_today():
    days = {date(2024, 3, 9), date(2024, 3, 8), date(2024, 3, 6)}
    assert calculate_streak(days, TODAY) == 2
    assert calculate_streak({date(2024, 3, 7)}, TODAY) == 0


def test_statistics_route(client, auth_headers, make_post):
    make_post('p1', 'u1', likes=3)
    response = client.get('/api/statistics/me', headers=auth_headers('u1'))
    assert response.status_code == 200
    body = response.get_json()
    assert body['total_posts'] == 1
    assert body['total_likes'] == 3
    assert client.get('/api/statistics/me').status_code == 401
