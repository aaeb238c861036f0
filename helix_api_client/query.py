"""Query string encoding for endpoint options."""

from typing import Any, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urlencode, urlsplit, urlunsplit

from .exceptions import URLParseError

QueryPairs = List[Tuple[str, str]]


def split_path(path: str):
    """Split ``path`` into URL components, rejecting malformed input.

    A relative reference whose first segment contains a colon is
    ambiguous with a scheme and is refused, as is a leading colon.
    """
    try:
        parts = urlsplit(path)
    except ValueError as exc:
        raise URLParseError(f"parse {path!r}: {exc}") from exc
    if not parts.scheme and not parts.netloc:
        first_segment = parts.path.split("/", 1)[0]
        if ":" in first_segment:
            raise URLParseError(
                f"parse {path!r}: first path segment in URL cannot contain colon"
            )
    return parts


def scalar(pairs: QueryPairs, key: str, value: Any) -> None:
    """Append ``key=value`` unless the value is empty."""
    if value is None or value == "" or value == 0:
        return
    pairs.append((key, str(value)))


def multi(pairs: QueryPairs, key: str, values: Optional[Sequence[Any]]) -> None:
    """Append one ``key=value`` pair per element, keeping order."""
    for value in values or ():
        pairs.append((key, str(value)))


def add_params(path: str, options: Any) -> str:
    """Return ``path`` with the query produced by ``options``.

    ``options`` must provide a ``to_query()`` method returning
    ``(key, value)`` pairs.  ``None`` options, or options that produce no
    pairs, leave the path untouched.
    """
    if options is None:
        return path

    parts = split_path(path)
    pairs: Iterable[Tuple[str, str]] = options.to_query()
    query = urlencode(list(pairs))
    if not query:
        return path
    return urlunsplit(parts._replace(query=query))
