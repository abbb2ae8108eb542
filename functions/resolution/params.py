"""
Parameter resolution across the query string and the route fragment.

Some navigation paths (in-app browsers, hash-routed redirects) drop the
query string and carry it inside the fragment instead, e.g.
``#/flow/run?cid=C1&qr=ABC123``. Both channels are passed in explicitly;
nothing here reads ambient request state.
"""

from typing import Iterable, Mapping, Optional, Union
from urllib.parse import parse_qs

Channel = Union[Mapping[str, Optional[str]], str, None]


def _as_mapping(channel: Channel) -> dict[str, str]:
    if channel is None:
        return {}
    if isinstance(channel, str):
        query = channel[1:] if channel.startswith("?") else channel
        return {k: v[0] for k, v in parse_qs(query, keep_blank_values=True).items()}
    return {k: v for k, v in channel.items() if v is not None}


def parse_fragment_query(fragment: Optional[str]) -> dict[str, str]:
    """
    Parse the query segment embedded in a route fragment.

    Everything after the fragment's own "?" is treated as a query string.
    A fragment without "?" carries no parameters.
    """
    if not fragment:
        return {}
    _, sep, query = fragment.partition("?")
    if not sep:
        return {}
    return _as_mapping(query)


def resolve_param(
    name: str,
    query: Channel,
    fragment: Optional[str] = None,
) -> Optional[str]:
    """Resolve one parameter, preferring the query channel over the fragment."""
    return resolve_params([name], query, fragment)[name]


def resolve_params(
    names: Iterable[str],
    query: Channel,
    fragment: Optional[str] = None,
) -> dict[str, Optional[str]]:
    """
    Resolve several parameters at once.

    Args:
        names: Parameter names to resolve
        query: Primary channel, either a mapping (API Gateway
            queryStringParameters) or a raw query string
        fragment: Secondary channel, the raw route fragment

    Returns:
        Dict of name -> value, None where neither channel has a non-empty value
    """
    primary = _as_mapping(query)
    secondary = None
    resolved: dict[str, Optional[str]] = {}

    for name in names:
        value = primary.get(name)
        if not value:
            if secondary is None:
                secondary = parse_fragment_query(fragment)
            value = secondary.get(name)
        resolved[name] = value or None

    return resolved
