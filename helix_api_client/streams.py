"""Streams endpoints: live streams, followed streams and stream keys."""

from __future__ import annotations

import dataclasses
import weakref
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple

from .context import Context
from .exceptions import HelixError, InvalidOptionsError
from .models import Model, Pagination, has_next_page, model_field, model_list_field, timestamp_field
from .query import QueryPairs, add_params, scalar
from .timestamp import Timestamp

if TYPE_CHECKING:
    from .client import HelixClient, Response

GET_STREAMS_PATH = "streams"
GET_FOLLOWED_STREAMS_PATH = "streams/followed"
GET_STREAM_KEY_PATH = "streams/key"

USER_ID_IS_REQUIRED = "user_id is required"
BROADCASTER_ID_IS_REQUIRED = "broadcaster_id is required"


@dataclass
class StreamsOptions:
    after: Optional[str] = None
    before: Optional[str] = None
    first: Optional[int] = None
    game_id: Optional[str] = None
    language: Optional[str] = None
    user_id: Optional[str] = None
    user_login: Optional[str] = None

    def to_query(self) -> QueryPairs:
        pairs: QueryPairs = []
        scalar(pairs, "after", self.after)
        scalar(pairs, "before", self.before)
        scalar(pairs, "first", self.first)
        scalar(pairs, "game_id", self.game_id)
        scalar(pairs, "language", self.language)
        scalar(pairs, "user_id", self.user_id)
        scalar(pairs, "user_login", self.user_login)
        return pairs


@dataclass
class BroadcasterID:
    id: Optional[str] = None

    def to_query(self) -> QueryPairs:
        pairs: QueryPairs = []
        scalar(pairs, "broadcaster_id", self.id)
        return pairs


@dataclass
class Stream(Model):
    id: Optional[str] = None
    user_id: Optional[str] = None
    user_login: Optional[str] = None
    user_name: Optional[str] = None
    game_id: Optional[str] = None
    game_name: Optional[str] = None
    type: Optional[str] = None
    title: Optional[str] = None
    viewer_count: Optional[int] = None
    started_at: Optional[Timestamp] = timestamp_field()
    language: Optional[str] = None
    thumbnail_url: Optional[str] = None
    tag_ids: Optional[List[str]] = None
    is_mature: Optional[bool] = None


@dataclass
class StreamsResponse(Model):
    data: List[Stream] = model_list_field(Stream)
    pagination: Optional[Pagination] = model_field(Pagination)

    @property
    def has_next(self) -> bool:
        return has_next_page(self.pagination)


@dataclass
class StreamKey(Model):
    stream_key: Optional[str] = None


@dataclass
class StreamKeyResponse(Model):
    data: List[StreamKey] = model_list_field(StreamKey)


class StreamsService:
    """Discover live streams and read a broadcaster's stream key."""

    def __init__(self, client: "HelixClient") -> None:
        self._client = weakref.proxy(client)

    def _list(
        self, ctx: Context, path: str, options: Optional[StreamsOptions]
    ) -> Tuple[StreamsResponse, "Response"]:
        request = self._client.new_request("GET", add_params(path, options))
        streams = StreamsResponse()
        response = self._client.do(ctx, request, streams)
        return streams, response

    def get_streams(
        self, ctx: Context, options: Optional[StreamsOptions] = None
    ) -> Tuple[StreamsResponse, "Response"]:
        """Fetch active streams, most viewers first."""
        return self._list(ctx, GET_STREAMS_PATH, options)

    def get_followed_streams(
        self, ctx: Context, options: Optional[StreamsOptions]
    ) -> Tuple[StreamsResponse, "Response"]:
        """Fetch live streams of channels followed by ``options.user_id``."""
        if options is None or not options.user_id:
            raise InvalidOptionsError(options, USER_ID_IS_REQUIRED)
        return self._list(ctx, GET_FOLLOWED_STREAMS_PATH, options)

    def iter_streams(
        self,
        ctx: Context,
        options: Optional[StreamsOptions] = None,
        *,
        followed: bool = False,
    ) -> Iterator[Stream]:
        """Yield streams across pages by following the pagination cursor.

        ``options`` is copied, never modified.
        """
        page = dataclasses.replace(options) if options is not None else StreamsOptions()
        fetch = self.get_followed_streams if followed else self.get_streams
        while True:
            streams, _ = fetch(ctx, page)
            yield from streams.data
            if not streams.has_next or not streams.data:
                return
            page = dataclasses.replace(page, after=streams.pagination.cursor, before=None)

    def get_stream_key(
        self, ctx: Context, options: Optional[BroadcasterID]
    ) -> Tuple[str, "Response"]:
        """Fetch the stream key of ``options.id``."""
        if options is None or not options.id:
            raise InvalidOptionsError(options, BROADCASTER_ID_IS_REQUIRED)

        request = self._client.new_request("GET", add_params(GET_STREAM_KEY_PATH, options))
        keys = StreamKeyResponse()
        response = self._client.do(ctx, request, keys)
        if not keys.data:
            raise HelixError("stream key response contained no data")
        return keys.data[0].stream_key, response
