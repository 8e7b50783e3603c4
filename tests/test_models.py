from pathlib import Path

import pytest

from spotstage.models.job import DownloadJob, JobKind, JobState
from spotstage.models.stats import QueueStats
from spotstage.utils.formatting import format_duration, format_size


def make_job(query="https://open.spotify.com/playlist/abc", kind=JobKind.PLAYLIST):
    return DownloadJob(
        query=query, kind=kind, output_format="mp3", bitrate=None, output_template=""
    )


def test_first_playlist_announcement_wins():
    job = make_job()

    assert job.is_playlist
    bucket = Path("/downloads/Various Artists")
    assert job.record_playlist("Road Trip", bucket / "Road Trip")
    assert not job.record_playlist("Other", bucket / "Other")
    assert job.playlist_name == "Road Trip"


@pytest.mark.parametrize(
    "query, kind, expected",
    [
        ("saved", JobKind.SEARCH, True),
        ("anything", JobKind.ALL_USER_SAVED_ALBUMS, True),
        ("https://open.spotify.com/album/abc", JobKind.ALBUM, False),
    ],
)
def test_needs_user_auth(query, kind, expected):
    assert make_job(query, kind).needs_user_auth is expected


def test_finish_sets_state_from_exit_code():
    job = make_job()
    assert job.state is JobState.BUILT

    job.finish(0)
    assert job.state is JobState.COMPLETED

    job.finish(1)
    assert job.state is JobState.FAILED


def test_queue_stats_history_entry():
    stats = QueueStats(jobs_completed=2, jobs_failed=1, queries=["a", "b", "c"])

    entry = stats.as_history_entry()

    assert stats.jobs_total == 3
    assert entry["queries"] == ["a", "b", "c"]
    assert entry["jobs_failed"] == 1


@pytest.mark.parametrize(
    "size, expected",
    [(0, "0 B"), (512, "512 B"), (1536, "1.5 KB"), (5 * 1024**3, "5.0 GB")],
)
def test_format_size(size, expected):
    assert format_size(size) == expected


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "0s"), (59.9, "59s"), (3600, "1h"), (3725, "1h 2m 5s")],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected
