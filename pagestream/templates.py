"""HTML document rendering for pre-rendered pages.

Uses Jinja2 to wrap a page's pre-rendered body in the full document shell:
asset preloads, the relative ``<base>`` tag, title, generator meta tag and
the page's head tags.

Key class:
- DocumentRenderer: Renders RenderedPage objects into complete HTML.
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from . import __version__
from .html_utils import render_head_tags
from .protocol import RenderedPage
from .utils import base_href

TEMPLATES_DIR = Path(__file__).parent / "templates"

CLIENT_BUNDLE = "elm.js"
RUNTIME_SCRIPT = "elm-pages.js"


class DocumentRenderer:
    """Render pages into HTML documents.

    Attributes:
        env: Jinja2 environment loading the packaged templates.
        generator: Value of the generator meta tag.
    """

    template_name = "document.html.jinja"

    def __init__(self, generator: str | None = None):
        self.env = Environment(
            loader=FileSystemLoader(TEMPLATES_DIR),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            keep_trailing_newline=True,
        )
        self.generator = generator or f"pagestream v{__version__}"

    def render(self, page: RenderedPage) -> str:
        """Render ``page`` as a complete HTML document.

        The title is escaped; the body fragment and head tags are inserted
        as-is since the renderer already produced markup.
        """
        template = self.env.get_template(self.template_name)
        return template.render(
            title=page.title,
            base_href=base_href(page.route),
            generator=self.generator,
            client_bundle=CLIENT_BUNDLE,
            runtime_script=RUNTIME_SCRIPT,
            head_tags=render_head_tags(page.head_tags),
            body=Markup(page.html),
        )


def read_template(name: str) -> str:
    """Return the text of a packaged non-Jinja template such as the runtime shim."""
    return (TEMPLATES_DIR / name).read_text(encoding="utf-8")
