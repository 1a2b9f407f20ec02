"""HTML rendering of the status page."""

from datetime import datetime
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from uptime import __version__
from uptime.domain import WebsiteStatus, utc

TEMPLATES_DIR = Path(__file__).parent / "templates"


def render_nicely(dt: Optional[datetime]) -> str:
    """RFC 3339 with milliseconds and a ``Z`` suffix, e.g. ``2024-05-01T12:00:00.000Z``."""
    if dt is None:
        return ""
    dt = utc(dt)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
    )
    env.filters["render_nicely"] = render_nicely
    return env


_env = _environment()


def render_page(statuses: list[WebsiteStatus]) -> str:
    template = _env.get_template("index.html")
    return template.render(status=statuses, version=__version__)
