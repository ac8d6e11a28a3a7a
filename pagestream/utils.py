"""Utility functions for Pagestream.

Key functions:
    normalize_route: Map a renderer route to its output directory.
    base_href: Relative ``<base>`` href for a route.
    compact_json: Serialize JSON the way the browser runtime expects.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def normalize_route(route: str) -> str:
    """Normalize a route into a path relative to the output directory.

    Strips leading and trailing slashes and drops at most one trailing
    ``index`` segment.

    Args:
        route: Route as sent by the renderer.

    Returns:
        Normalized route; "" for the site root.

    Examples:
        >>> normalize_route("/blog/post-1/")
        'blog/post-1'

        >>> normalize_route("blog/post-1/index")
        'blog/post-1'

        >>> normalize_route("index")
        ''
    """
    cleaned = route.strip("/")
    segments = cleaned.split("/")
    if segments[-1] == "index":
        segments = segments[:-1]
    return "/".join(segments).strip("/")


def base_href(route: str) -> str:
    """Return the relative href that points from a route back to the root.

    One ``..`` per path segment, always ending in a slash.

    Examples:
        >>> base_href("")
        './'

        >>> base_href("a/b")
        '../../'
    """
    normalized = normalize_route(route)
    if not normalized:
        return "./"
    return "../" * len(normalized.split("/"))


def route_output_dir(output_dir: Path, route: str) -> Path:
    """Return the directory a route's files are written to."""
    normalized = normalize_route(route)
    return output_dir / normalized if normalized else output_dir


def compact_json(value: Any) -> str:
    """Serialize ``value`` without insignificant whitespace.

    Examples:
        >>> compact_json({"body": "<p>hi</p>", "staticData": {"a": 1}})
        '{"body":"<p>hi</p>","staticData":{"a":1}}'
    """
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)

