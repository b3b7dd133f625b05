from __future__ import annotations

import html as html_lib
from collections.abc import Sequence
from dataclasses import dataclass

from moviemail.errors import NotificationDispatchError
from moviemail.models.works import Work


@dataclass(frozen=True)
class RenderedMessage:
    plain: str
    html: str


def _director(work: Work) -> str:
    if not work.director_name:
        raise NotificationDispatchError(f"Work {work.id} reached notification without a director name.")
    return work.director_name


def render_plain_line(work: Work) -> str:
    return f"{work.link} - {work.title} - {_director(work)}"


def render_html_line(work: Work) -> str:
    link = html_lib.escape(work.link, quote=True)
    title = html_lib.escape(work.title)
    director = html_lib.escape(_director(work))
    return f'<li><a href="{link}">{title}</a> - {director}</li>'


def render_message(works: Sequence[Work]) -> RenderedMessage | None:
    """Render the plain and HTML bodies; None when there is nothing to announce."""

    if not works:
        return None
    plain = "\n".join(render_plain_line(work) for work in works) + "\n"
    items = "\n".join(render_html_line(work) for work in works)
    html = f"<html>\n<body>\n<ul>\n{items}\n</ul>\n</body>\n</html>\n"
    return RenderedMessage(plain=plain, html=html)
