"""Users endpoints."""

from __future__ import annotations

import weakref
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Tuple

from .context import Context
from .exceptions import InvalidOptionsError
from .models import Model, model_list_field, timestamp_field
from .query import QueryPairs, add_params, multi
from .timestamp import Timestamp

if TYPE_CHECKING:
    from .client import HelixClient, Response

GET_USERS_PATH = "users"
MAX_USERS_LOOKUP = 100

USER_ID_LOGIN_IS_REQUIRED = "id or login parameter is required"
USERS_100_LIMIT_ERROR = (
    "The limit of 100 IDs and login names is the total limit. You can request, "
    "for example, 50 of each or 100 of one of them. You cannot request 100 of both."
)


@dataclass
class UsersOptions:
    ids: Optional[List[str]] = None
    logins: Optional[List[str]] = None

    def to_query(self) -> QueryPairs:
        pairs: QueryPairs = []
        multi(pairs, "id", self.ids)
        multi(pairs, "login", self.logins)
        return pairs


@dataclass
class User(Model):
    id: Optional[str] = None
    login: Optional[str] = None
    display_name: Optional[str] = None
    type: Optional[str] = None
    broadcaster_type: Optional[str] = None
    description: Optional[str] = None
    profile_image_url: Optional[str] = None
    offline_image_url: Optional[str] = None
    view_count: Optional[int] = None
    email: Optional[str] = None
    created_at: Optional[Timestamp] = timestamp_field()


@dataclass
class UsersResponse(Model):
    data: List[User] = model_list_field(User)


class UsersService:
    """Look up users by id or login name."""

    def __init__(self, client: "HelixClient") -> None:
        self._client = weakref.proxy(client)

    def get_users(
        self, ctx: Context, options: Optional[UsersOptions]
    ) -> Tuple[List[User], "Response"]:
        """Fetch users matching the given ids and logins.

        At least one id or login is required and at most 100 may be
        requested in total.
        """
        if options is None or (not options.ids and not options.logins):
            raise InvalidOptionsError(options, USER_ID_LOGIN_IS_REQUIRED)
        if len(options.ids or ()) + len(options.logins or ()) > MAX_USERS_LOOKUP:
            raise InvalidOptionsError(options, USERS_100_LIMIT_ERROR)

        path = add_params(GET_USERS_PATH, options)
        request = self._client.new_request("GET", path)
        users = UsersResponse()
        response = self._client.do(ctx, request, users)
        return users.data, response
