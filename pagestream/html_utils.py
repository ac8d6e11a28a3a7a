"""HTML rendering helpers for page head tags.

The renderer describes SEO and other head content as structured records.
This module turns those records into markup for the document template.

Functions:
    render_head_tag: Render one HeadTag or JsonLdTag.
    render_head_tags: Render a sequence of tags, one per line.
"""

from __future__ import annotations

import json
from collections.abc import Iterable

from markupsafe import Markup, escape

from .protocol import HeadTag, JsonLdTag, SeoTag


def render_head_tag(tag: SeoTag) -> Markup:
    """Render a single head tag.

    Attribute values are escaped. JSON-LD contents are embedded in a script
    block with ``</`` escaped so the payload cannot close the tag early.

    Examples:
        >>> render_head_tag(HeadTag("meta", (("name", "description"), ("content", "Hi"))))
        Markup('<meta name="description" content="Hi" />')
    """
    if isinstance(tag, JsonLdTag):
        payload = json.dumps(tag.contents, ensure_ascii=False).replace("</", "<\\/")
        return Markup(f'<script type="application/ld+json">{payload}</script>')
    attrs = "".join(f' {escape(key)}="{escape(value)}"' for key, value in tag.attributes)
    return Markup(f"<{escape(tag.name)}{attrs} />")


def render_head_tags(tags: Iterable[SeoTag]) -> Markup:
    return Markup("\n    ").join(render_head_tag(tag) for tag in tags)


__all__ = ["HeadTag", "JsonLdTag", "render_head_tag", "render_head_tags"]
