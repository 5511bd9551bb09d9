from datetime import datetime, timezone

import pytest

from social_pulse.types import NormalizedPost


@pytest.fixture
def make_post():
    def _make(
        post_id="p1",
        caption="",
        likes=0,
        comments=0,
        shares=0,
        when=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
        sentiment="neutral",
        emotion="Neutral",
    ):
        return NormalizedPost(
            postId=post_id,
            caption=caption,
            likes=likes,
            commentsCount=comments,
            shares=shares,
            timestamp=when,
            sentimentLabel=sentiment,
            emotionLabel=emotion,
            engagementScore=likes + comments + shares,
        )

    return _make
