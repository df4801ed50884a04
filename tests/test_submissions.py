from __future__ import annotations

import pytest
from sqlmodel import select

from carnival.database import Submission, SubmissionKind
from carnival.errors import EventNotFoundError, InvalidPayloadError
from carnival.media import extract_track_id, normalize_track_reference
from carnival.submissions import SubmissionPayload, SubmissionStore, is_addressable, rank

CANONICAL = "https://open.spotify.com/track/4cOdK2wGLETKBW3PvgPWqT"


@pytest.mark.parametrize(
    "reference",
    [
        "spotify:track:4cOdK2wGLETKBW3PvgPWqT",
        "https://open.spotify.com/track/4cOdK2wGLETKBW3PvgPWqT",
        "4cOdK2wGLETKBW3PvgPWqT",
        "  4cOdK2wGLETKBW3PvgPWqT  ",
        "https://open.spotify.com/track/4cOdK2wGLETKBW3PvgPWqT?si=0123abcd",
        "https://open.spotify.com/intl-de/track/4cOdK2wGLETKBW3PvgPWqT",
    ],
)
def test_track_references_normalize_to_web_url(reference):
    assert normalize_track_reference(reference) == CANONICAL


@pytest.mark.parametrize(
    "reference",
    [
        "not-a-track",
        "",
        "spotify:album:4cOdK2wGLETKBW3PvgPWqT",
        "https://open.spotify.com/album/4cOdK2wGLETKBW3PvgPWqT",
        "4cOdK2wGLETKBW3PvgPWq",
        "spotify:track:4cOdK2wGLETKBW3PvgPWqT-extra",
    ],
)
def test_unrecognized_track_references(reference):
    assert extract_track_id(reference) is None
    with pytest.raises(InvalidPayloadError):
        normalize_track_reference(reference)


def test_track_submission_stores_canonical_url(session, event):
    store = SubmissionStore(session, SubmissionKind.TRACK)
    track = store.submit(event.id, "guest-7", SubmissionPayload(url="spotify:track:4cOdK2wGLETKBW3PvgPWqT"))

    assert track.url == CANONICAL
    assert track.vote_count == 0
    assert track.kind == "track"
    assert track.author_id == "guest-7"


def test_invalid_track_creates_no_record(session, event):
    store = SubmissionStore(session, SubmissionKind.TRACK)
    with pytest.raises(InvalidPayloadError):
        store.submit(event.id, "guest-7", SubmissionPayload(url="not-a-track"))
    assert session.exec(select(Submission)).all() == []


@pytest.mark.parametrize("kind", [SubmissionKind.COSTUME, SubmissionKind.PHOTO])
@pytest.mark.parametrize(
    "payload",
    [
        SubmissionPayload(url="https://img.example/mask.jpg", title=""),
        SubmissionPayload(url="https://img.example/mask.jpg", title="   "),
        SubmissionPayload(url="", title="Golden mask"),
        SubmissionPayload(url="mask.jpg", title="Golden mask"),
        SubmissionPayload(url="ftp://img.example/mask.jpg", title="Golden mask"),
        SubmissionPayload(url="https://img.example/mask.jpg", title="x" * 201),
    ],
)
def test_image_submissions_need_title_and_location(session, event, kind, payload):
    with pytest.raises(InvalidPayloadError):
        SubmissionStore(session, kind).submit(event.id, "guest-7", payload)
    assert session.exec(select(Submission)).all() == []


def test_submission_requires_author(session, event):
    with pytest.raises(InvalidPayloadError):
        SubmissionStore(session, SubmissionKind.COSTUME).submit(
            event.id, " ", SubmissionPayload(url="https://img.example/mask.jpg", title="Golden mask")
        )


def test_submission_for_missing_event(session):
    with pytest.raises(EventNotFoundError):
        SubmissionStore(session, SubmissionKind.COSTUME).submit(
            404, "guest-7", SubmissionPayload(url="https://img.example/mask.jpg", title="Golden mask")
        )


def test_list_by_event_is_partitioned_by_event_and_kind(session, event):
    costumes = SubmissionStore(session, SubmissionKind.COSTUME)
    tracks = SubmissionStore(session, SubmissionKind.TRACK)
    first = costumes.submit(event.id, "a", SubmissionPayload(url="https://img.example/1.jpg", title="Harlequin"))
    second = costumes.submit(event.id, "b", SubmissionPayload(url="/static/uploads/2.jpg", title="Pierrot"))
    tracks.submit(event.id, "c", SubmissionPayload(url="4cOdK2wGLETKBW3PvgPWqT"))

    listed = costumes.list_by_event(event.id)
    assert [item.id for item in listed] == [first.id, second.id]
    assert costumes.list_by_event(event.id + 1) == []
    assert len(tracks.list_by_event(event.id)) == 1


def test_rank_orders_by_votes_and_keeps_ties_stable():
    items = [
        Submission(id=1, event_id=1, kind="track", author_id="a", url="u1", vote_count=2),
        Submission(id=2, event_id=1, kind="track", author_id="a", url="u2", vote_count=5),
        Submission(id=3, event_id=1, kind="track", author_id="a", url="u3", vote_count=2),
        Submission(id=4, event_id=1, kind="track", author_id="a", url="u4", vote_count=0),
    ]
    assert [item.id for item in rank(items)] == [2, 1, 3, 4]


def test_addressable_locations():
    assert is_addressable("https://storage.googleapis.com/bucket/1/photo.jpg")
    assert is_addressable("/static/uploads/1/photo.jpg")
    assert not is_addressable("//evil.example/photo.jpg")
    assert not is_addressable("photo.jpg")
    assert not is_addressable("javascript:alert(1)")
