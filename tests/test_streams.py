"""Tests for the streams service."""
import json
from datetime import datetime, timezone
from urllib.parse import parse_qsl, urlsplit

import pytest
import responses

from helix_api_client import (
    BroadcasterID,
    HelixError,
    InvalidOptionsError,
    Pagination,
    Stream,
    StreamsOptions,
    StreamsResponse,
    Timestamp,
)
from helix_api_client.streams import BROADCASTER_ID_IS_REQUIRED, USER_ID_IS_REQUIRED

BASE_URL = "https://api.twitch.tv/helix/"
REFERENCE_TIME = Timestamp(datetime(2006, 1, 2, 15, 4, 5, tzinfo=timezone.utc))


def query_of(call):
    return parse_qsl(urlsplit(call.request.url).query)


def test_stream_marshal():
    """Empty records encode to an empty object; populated ones round trip."""
    assert Stream().to_dict() == {}

    stream = Stream(
        id="40952121085",
        user_id="1",
        user_login="kek_lol",
        user_name="Kek_Lol",
        game_id="494131",
        game_name="Little Nightmares",
        type="live",
        title="hablamos y le damos a Little Nightmares 1",
        viewer_count=10,
        started_at=REFERENCE_TIME,
        language="es",
        thumbnail_url="https://example.com/live_user_kek_lol-{width}x{height}.jpg",
        tag_ids=["kek", "lol"],
        is_mature=False,
    )
    assert stream.to_dict() == {
        "id": "40952121085",
        "user_id": "1",
        "user_login": "kek_lol",
        "user_name": "Kek_Lol",
        "game_id": "494131",
        "game_name": "Little Nightmares",
        "type": "live",
        "title": "hablamos y le damos a Little Nightmares 1",
        "viewer_count": 10,
        "started_at": "2006-01-02T15:04:05Z",
        "language": "es",
        "thumbnail_url": "https://example.com/live_user_kek_lol-{width}x{height}.jpg",
        "tag_ids": ["kek", "lol"],
        "is_mature": False,
    }
    assert Stream.from_dict(json.loads(json.dumps(stream.to_dict()))) == stream


def test_streams_response_round_trip():
    envelope = StreamsResponse(
        data=[Stream(id="40952121085", is_mature=False, started_at=REFERENCE_TIME)],
        pagination=Pagination(cursor="Mg=="),
    )
    assert StreamsResponse.from_dict(envelope.to_dict()) == envelope


@responses.activate
def test_get_streams(client, ctx):
    data_cursor = "Mg=="
    responses.add(
        responses.GET,
        BASE_URL + "streams",
        json={
            "data": [
                {
                    "user_id": "115141884",
                    "user_name": "GRPZDC",
                    "viewer_count": 379,
                    "started_at": "2006-01-02T15:04:05Z",
                    "tag_ids": ["0569b171-2a2b-476e-a596-5bdfb45a1327"],
                    "is_mature": True,
                }
            ],
            "pagination": {"cursor": data_cursor},
        },
    )

    streams, _ = client.streams.get_streams(ctx, StreamsOptions(first=1, user_id="115141884"))

    assert streams.data == [
        Stream(
            user_id="115141884",
            user_name="GRPZDC",
            viewer_count=379,
            started_at=REFERENCE_TIME,
            tag_ids=["0569b171-2a2b-476e-a596-5bdfb45a1327"],
            is_mature=True,
        )
    ]
    assert streams.pagination.cursor == data_cursor
    assert streams.has_next
    assert query_of(responses.calls[0]) == [("first", "1"), ("user_id", "115141884")]


@responses.activate
def test_get_streams_without_query(client, ctx):
    """No options mean no query and an empty pagination object."""
    responses.add(
        responses.GET,
        BASE_URL + "streams",
        json={"data": [{"user_id": "11"}], "pagination": {}},
    )

    streams, _ = client.streams.get_streams(ctx)

    assert streams.data == [Stream(user_id="11")]
    assert streams.pagination == Pagination()
    assert not streams.has_next
    assert responses.calls[0].request.url == BASE_URL + "streams"


@responses.activate
def test_get_followed_streams(client, ctx):
    responses.add(
        responses.GET,
        BASE_URL + "streams/followed",
        json={"data": [{"user_id": "12"}], "pagination": {}},
    )

    streams, _ = client.streams.get_followed_streams(ctx, StreamsOptions(user_id="12"))

    assert streams.data == [Stream(user_id="12")]
    assert query_of(responses.calls[0]) == [("user_id", "12")]


def test_get_followed_streams_requires_user_id(client, ctx):
    with pytest.raises(InvalidOptionsError) as exc:
        client.streams.get_followed_streams(ctx, None)
    assert exc.value.message == USER_ID_IS_REQUIRED

    with pytest.raises(InvalidOptionsError):
        client.streams.get_followed_streams(ctx, StreamsOptions(game_id="11"))


@responses.activate
def test_get_stream_key(client, ctx):
    responses.add(
        responses.GET,
        BASE_URL + "streams/key",
        json={"data": [{"stream_key": "live_44322889_a34ub37c8ajv98a0"}]},
    )

    key, resp = client.streams.get_stream_key(ctx, BroadcasterID("12"))

    assert key == "live_44322889_a34ub37c8ajv98a0"
    assert resp.status_code == 200
    assert query_of(responses.calls[0]) == [("broadcaster_id", "12")]


@responses.activate
def test_get_stream_key_empty_data(client, ctx):
    responses.add(responses.GET, BASE_URL + "streams/key", json={"data": []})

    with pytest.raises(HelixError):
        client.streams.get_stream_key(ctx, BroadcasterID("12"))


def test_get_stream_key_requires_broadcaster_id(client, ctx):
    with pytest.raises(InvalidOptionsError) as exc:
        client.streams.get_stream_key(ctx, None)
    assert exc.value.message == BROADCASTER_ID_IS_REQUIRED

    with pytest.raises(InvalidOptionsError):
        client.streams.get_stream_key(ctx, BroadcasterID())


@responses.activate
def test_iter_streams_follows_cursor(client, ctx):
    """Pages are fetched until the cursor runs out; options stay untouched."""
    responses.add(
        responses.GET,
        BASE_URL + "streams",
        json={"data": [{"id": "1"}, {"id": "2"}], "pagination": {"cursor": "page-2"}},
    )
    responses.add(
        responses.GET,
        BASE_URL + "streams",
        json={"data": [{"id": "3"}], "pagination": {}},
    )

    options = StreamsOptions(first=2, language="en")
    ids = [stream.id for stream in client.streams.iter_streams(ctx, options)]

    assert ids == ["1", "2", "3"]
    assert options.after is None
    assert query_of(responses.calls[0]) == [("first", "2"), ("language", "en")]
    assert query_of(responses.calls[1]) == [
        ("after", "page-2"),
        ("first", "2"),
        ("language", "en"),
    ]


@responses.activate
def test_iter_followed_streams(client, ctx):
    responses.add(
        responses.GET,
        BASE_URL + "streams/followed",
        json={"data": [{"id": "9"}]},
    )

    streams = list(client.streams.iter_streams(ctx, StreamsOptions(user_id="5"), followed=True))

    assert streams == [Stream(id="9")]
    assert len(responses.calls) == 1
