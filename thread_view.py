"""View models and markup for a thread page.

Each post is classified once when its view model is built; the renderer then
dispatches on the cached kind for the root post and every reply alike.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator

from flask import render_template
from markupsafe import Markup

from attachments import (
    ACCEPTED_UPLOAD_EXTENSIONS,
    Attachment,
    AttachmentKind,
    classify,
)

TITLE_MAX_LENGTH = 15
MESSAGE_MAX_LENGTH = 100000


@dataclass(frozen=True)
class PostView:
    id: str
    display_title: str
    message: str
    attachment: Attachment

    @property
    def attachment_kind(self) -> AttachmentKind:
        return self.attachment.kind

    @property
    def attachment_path(self) -> str | None:
        return self.attachment.path


def build_view_model(post: Any, ordinal: int | None = None) -> PostView:
    if ordinal is not None:
        display_title = f"Reply {ordinal}"
    else:
        display_title = getattr(post, "title", None) or ""
    return PostView(
        id=post.id,
        display_title=display_title,
        message=post.message,
        attachment=classify(getattr(post, "attachment", None)),
    )


def iter_reply_views(posts: Iterable[Any]) -> Iterator[PostView]:
    for ordinal, post in enumerate(posts, start=1):
        yield build_view_model(post, ordinal)


def render_media(view: PostView) -> Markup:
    attachment = view.attachment
    kind = attachment.kind
    if kind == AttachmentKind.NONE:
        return Markup("")

    url = attachment.url
    if kind == AttachmentKind.IMAGE:
        return Markup('<img src="{}" width="200" height="200" alt="Image">').format(url)
    if kind == AttachmentKind.VIDEO:
        return Markup(
            '<video width="200" height="200" controls>'
            '<source src="{}" type="{}">'
            "Your browser does not support the video tag."
            "</video>"
        ).format(url, attachment.mime_type)
    if kind == AttachmentKind.AUDIO:
        return Markup(
            "<audio controls>"
            '<source src="{}" type="{}">'
            "Your browser does not support the audio element."
            "</audio>"
        ).format(url, attachment.mime_type)
    return Markup('<a href="{}">Download file</a>').format(url)


def _form_context() -> dict:
    return {
        "title_max_length": TITLE_MAX_LENGTH,
        "message_max_length": MESSAGE_MAX_LENGTH,
        "accepted_extensions": ACCEPTED_UPLOAD_EXTENSIONS,
        "render_media": render_media,
    }


def render_thread(root: PostView, replies: Iterable[PostView]) -> str:
    """Render the thread page. ``replies`` is consumed once, in order."""
    if root is None:
        raise ValueError("render_thread requires a root post")
    return render_template("thread.html", root=root, replies=replies, **_form_context())


def render_board(posts: Iterable[PostView], page: int, has_next: bool) -> str:
    return render_template(
        "board.html",
        posts=posts,
        prev_page=page - 1 if page > 0 else None,
        next_page=page + 1 if has_next else None,
        **_form_context(),
    )
