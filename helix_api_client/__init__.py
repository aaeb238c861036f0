"""
Python client for the Twitch Helix REST API.

This package provides a :class:`HelixClient` that handles OAuth2
authentication against the Twitch identity server, builds and sends
requests to Helix endpoints, and decodes the JSON responses into typed
records.  Users and streams endpoints are exposed as services on the
client.

Examples
--------

```python
from helix_api_client import (
    BroadcasterID,
    Context,
    Credentials,
    HelixClient,
    StreamsOptions,
)

with HelixClient(Credentials.from_env()) as client:
    ctx = Context.background().with_timeout(10)

    streams, resp = client.streams.get_streams(ctx, StreamsOptions(first=20))
    for stream in streams.data:
        print(stream.user_name, stream.viewer_count)

    print("requests left:", resp.rate.remaining)
```

Without a pre-issued OAuth token the client obtains an app access
token with the client credentials grant by POSTing the client id and
secret to ``https://id.twitch.tv/oauth2/token``.  Every Helix request
carries the client id in the ``Client-Id`` header together with the
bearer token.
"""

import logging

from .client import Credentials, HelixClient, Rate, Response
from .context import Context
from .exceptions import (
    ContextCancelledError,
    ContextError,
    ContextRequiredError,
    DeadlineExceededError,
    EmptyCredentialsError,
    HelixAPIError,
    HelixAuthError,
    HelixError,
    InvalidMethodError,
    InvalidOptionsError,
    RequestBodyError,
    RequestBuildError,
    TimestampDecodeError,
    URLParseError,
)
from .models import Pagination
from .streams import BroadcasterID, Stream, StreamsOptions, StreamsResponse
from .timestamp import Timestamp
from .users import User, UsersOptions

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
__all__ = [
    "HelixClient",
    "Credentials",
    "Context",
    "Rate",
    "Response",
    "Timestamp",
    "Pagination",
    "User",
    "UsersOptions",
    "Stream",
    "StreamsOptions",
    "StreamsResponse",
    "BroadcasterID",
    "HelixError",
    "HelixAPIError",
    "HelixAuthError",
    "EmptyCredentialsError",
    "InvalidOptionsError",
    "RequestBuildError",
    "InvalidMethodError",
    "URLParseError",
    "RequestBodyError",
    "ContextError",
    "ContextRequiredError",
    "ContextCancelledError",
    "DeadlineExceededError",
    "TimestampDecodeError",
]
