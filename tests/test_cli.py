import json
import sys

import pytest
from social_pulse import cli

CSV = (
    "post_id,caption,likes,comments,shares,date\n"
    "p1,Love this #launch,100,5,5,2024-05-01T09:00:00Z\n"
    "p2,ugh awful #launch #fail,4,1,0,2024-05-02T09:00:00Z\n"
)


@pytest.fixture
def export(tmp_path):
    path = tmp_path / "posts.csv"
    path.write_text(CSV, encoding="utf-8")
    return path


def invoke(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["social-pulse", *argv])
    cli.main()


def test_normalize_prints_posts(monkeypatch, capsys, export):
    invoke(monkeypatch, "normalize", "--file", str(export))
    payload = json.loads(capsys.readouterr().out)

    assert payload["count"] == 2
    assert [p["postId"] for p in payload["data"]] == ["p1", "p2"]
    assert payload["data"][0]["engagementScore"] == 110
    assert payload["data"][0]["predictedPerformance"] == "High"


def test_analytics_with_filters(monkeypatch, capsys, export):
    invoke(monkeypatch, "analytics", "--file", str(export), "--date-from", "2024-05-02")
    payload = json.loads(capsys.readouterr().out)

    assert payload["totalPosts"] == 1
    assert payload["bestPerformingPost"]["postId"] == "p2"


def test_hashtags_to_output_file(monkeypatch, capsys, export, tmp_path):
    out = tmp_path / "tags.json"
    invoke(monkeypatch, "hashtags", "--file", str(export), "--output", str(out))

    assert "Saved hashtags output" in capsys.readouterr().out
    report = json.loads(out.read_text(encoding="utf-8"))
    assert report["totalUniqueHashtags"] == 2
    assert report["topHashtags"][0] == {
        "hashtag": "#launch",
        "count": 2,
        "avgEngagement": 58,
        "totalEngagement": 115,
    }


def test_insights(monkeypatch, capsys, export):
    invoke(monkeypatch, "insights", "--file", str(export))
    cards = json.loads(capsys.readouterr().out)
    assert [c["id"] for c in cards][0] == "best-post"
    assert "trend" not in cards[0]


def test_unsupported_file_exits_nonzero(monkeypatch, capsys, tmp_path):
    path = tmp_path / "posts.txt"
    path.write_text("nope", encoding="utf-8")

    with pytest.raises(SystemExit) as exc:
        invoke(monkeypatch, "normalize", "--file", str(path))

    assert exc.value.code == 1
    assert "Normalize failed: Unsupported file format" in capsys.readouterr().err


def test_missing_file_exits_nonzero(monkeypatch, capsys, tmp_path):
    with pytest.raises(SystemExit):
        invoke(monkeypatch, "analytics", "--file", str(tmp_path / "absent.csv"))
    assert "Analytics failed" in capsys.readouterr().err
