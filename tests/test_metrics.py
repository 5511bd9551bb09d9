from datetime import datetime, timedelta, timezone

import pytest
from social_pulse.errors import ValidationError
from social_pulse.metrics import (
    compute_analytics,
    compute_engagement_over_time,
    compute_engagement_trend,
    compute_hashtag_frequency,
    compute_hashtag_report,
    date_label,
    extract_hashtags,
    filter_posts,
    find_best_post,
    round_half_up,
)
from social_pulse.types import PostFilters

BASE = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_posts(make_post):
    # newest first, the order analytics queries hand posts over in
    return [
        make_post("p3", "Launch day! #Launch #product", likes=50, comments=10, shares=5,
                  when=BASE + timedelta(days=2), sentiment="positive", emotion="Excited"),
        make_post("p2", "Quiet update #product", likes=20, comments=2, shares=0,
                  when=BASE + timedelta(days=1), sentiment="neutral"),
        make_post("p1", "Outage again #status", likes=5, comments=1, shares=0,
                  when=BASE, sentiment="negative", emotion="Angry"),
    ]


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.4) == 2
    assert round_half_up(-2.5) == -2


def test_compute_analytics_empty():
    summary = compute_analytics([])
    assert summary.model_dump() == {
        "totalPosts": 0,
        "totalLikes": 0,
        "avgEngagement": 0,
        "sentimentDistribution": {"positive": 0, "neutral": 0, "negative": 0},
        "emotionDistribution": {"Happy": 0, "Excited": 0, "Neutral": 0, "Angry": 0},
        "engagementOverTime": [],
        "hashtagFrequency": [],
        "bestPerformingPost": None,
        "engagementTrend": "neutral",
    }


def test_compute_analytics(sample_posts):
    summary = compute_analytics(sample_posts)

    assert summary.totalPosts == 3
    assert summary.totalLikes == 75
    # (65 + 22 + 6) / 3 = 31
    assert summary.avgEngagement == 31
    assert summary.sentimentDistribution.model_dump() == {"positive": 1, "neutral": 1, "negative": 1}
    assert summary.emotionDistribution.model_dump() == {"Happy": 0, "Excited": 1, "Neutral": 1, "Angry": 1}
    assert summary.bestPerformingPost.model_dump() == {
        "postId": "p3",
        "caption": "Launch day! #Launch #product",
        "engagementScore": 65,
    }
    assert summary.engagementTrend == "up"
    assert [p.model_dump() for p in summary.engagementOverTime] == [
        {"date": "Jan 12", "engagement": 65},
        {"date": "Jan 11", "engagement": 22},
        {"date": "Jan 10", "engagement": 6},
    ]


def test_extract_hashtags_dedupes_case_insensitively():
    assert extract_hashtags("#Go #go #GO_team and #go") == ["#go", "#go_team"]
    assert extract_hashtags("no tags # here") == []


def test_hashtag_frequency(sample_posts):
    tags = compute_hashtag_frequency(sample_posts)
    assert tags[0].model_dump() == {"hashtag": "#product", "count": 2, "avgEngagement": 44}
    assert {t.hashtag for t in tags} == {"#product", "#launch", "#status"}


def test_hashtag_in_three_of_five_posts(make_post):
    posts = [
        make_post("a", "#travel", likes=10),
        make_post("b", "#travel", likes=20),
        make_post("c", "#travel", likes=30),
        make_post("d", "#food", likes=40),
        make_post("e", "nothing", likes=50),
    ]
    travel = compute_hashtag_frequency(posts)[0]
    assert (travel.hashtag, travel.count, travel.avgEngagement) == ("#travel", 3, 20)


def test_hashtag_frequency_keeps_top_ten(make_post):
    posts = [make_post(str(i), f"#tag{i}") for i in range(15)]
    assert len(compute_hashtag_frequency(posts)) == 10


def test_hashtag_report(make_post):
    posts = [
        make_post("a", "#common #rare", likes=100),
        make_post("b", "#common", likes=10),
        make_post("c", "#common", likes=10),
    ]
    report = compute_hashtag_report(posts)
    assert report.totalUniqueHashtags == 2
    assert report.topHashtags[0].hashtag == "#common"
    assert report.topHashtags[0].totalEngagement == 120
    assert report.topByEngagement[0].hashtag == "#rare"
    assert report.topByEngagement[0].avgEngagement == 100


def test_engagement_over_time_groups_by_day_and_keeps_last_twenty(make_post):
    posts = []
    for i in range(25):
        day = BASE - timedelta(days=i)
        posts.append(make_post(f"a{i}", likes=10, when=day))
        posts.append(make_post(f"b{i}", likes=21, when=day + timedelta(hours=1)))

    points = compute_engagement_over_time(posts)
    assert len(points) == 20
    # average of 10 and 21, half rounded up
    assert all(p.engagement == 16 for p in points)
    assert points[0].date == date_label(BASE - timedelta(days=5))
    assert points[-1].date == date_label(BASE - timedelta(days=24))


def test_best_post_first_wins_ties(make_post):
    posts = [make_post("first", likes=5), make_post("second", likes=5)]
    assert find_best_post(posts).postId == "first"
    assert find_best_post([]) is None


def test_engagement_trend(make_post):
    rising = [make_post(str(i), likes=v, when=BASE + timedelta(days=i)) for i, v in enumerate([10, 10, 20, 20])]
    falling = [make_post(str(i), likes=v, when=BASE + timedelta(days=i)) for i, v in enumerate([20, 20, 10, 10])]
    flat = [make_post(str(i), likes=v, when=BASE + timedelta(days=i)) for i, v in enumerate([10, 10, 10, 10])]
    assert compute_engagement_trend(rising) == "up"
    assert compute_engagement_trend(list(reversed(rising))) == "up"
    assert compute_engagement_trend(falling) == "down"
    assert compute_engagement_trend(flat) == "neutral"


def test_single_post_trend_compares_against_empty_half(make_post):
    # first half is empty (mean 0), so any engagement reads as rising
    assert compute_engagement_trend([make_post(likes=5)]) == "up"
    assert compute_engagement_trend([make_post(likes=0)]) == "neutral"


def test_filter_by_sentiment(sample_posts):
    assert [p.postId for p in filter_posts(sample_posts, PostFilters(sentiment="positive"))] == ["p3"]
    assert len(filter_posts(sample_posts, PostFilters(sentiment="all"))) == 3
    assert len(filter_posts(sample_posts, None)) == 3


def test_filter_date_to_covers_whole_day(sample_posts):
    selected = filter_posts(sample_posts, PostFilters(dateFrom="2024-01-11", dateTo="2024-01-11"))
    assert [p.postId for p in selected] == ["p2"]

    selected = filter_posts(sample_posts, PostFilters(dateTo="2024-01-10"))
    assert [p.postId for p in selected] == ["p1"]


def test_filter_rejects_bad_dates(sample_posts):
    with pytest.raises(ValidationError):
        filter_posts(sample_posts, PostFilters(dateFrom="someday"))


def test_date_label_has_no_zero_padding():
    assert date_label(datetime(2024, 11, 4, tzinfo=timezone.utc)) == "Nov 4"
