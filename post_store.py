"""Thread storage on top of the SQLAlchemy session.

Every function takes the request's session, mirroring how the routes pass
``get_db()`` around. Threads are one level deep: a root post and its replies.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Iterator, Optional

from sqlalchemy import select

from db_models import Post

POSTS_PER_PAGE = int(os.environ.get("POSTS_PER_PAGE", "30"))
MAX_PAGE = int(os.environ.get("MAX_PAGE", "10000"))


class BoardError(Exception):
    pass


class PostNotFound(BoardError):
    pass


class InvalidParent(BoardError):
    pass


def get_root_post(db, post_id: str) -> Optional[Post]:
    post = db.get(Post, post_id)
    if post is None or post.parent_id is not None:
        return None
    return post


def iter_replies(db, root_id: str) -> Iterator[Post]:
    return iter(
        db.scalars(
            select(Post)
            .where(Post.parent_id == root_id)
            .order_by(Post.created_at.asc(), Post.id.asc())
        )
    )


def get_thread(db, post_id: str) -> Optional[tuple[Post, Iterator[Post]]]:
    """Root post plus its replies in chronological order, or None."""
    root = get_root_post(db, post_id)
    if root is None:
        return None
    return root, iter_replies(db, root.id)


def list_threads(db, page: int = 0, per_page: int | None = None) -> tuple[list[Post], bool]:
    per_page = per_page or POSTS_PER_PAGE
    page = min(max(page, 0), MAX_PAGE)
    rows = (
        db.execute(
            select(Post)
            .where(Post.parent_id.is_(None))
            .order_by(Post.bumped_at.desc(), Post.id.desc())
            .offset(page * per_page)
            .limit(per_page + 1)
        )
        .scalars()
        .all()
    )
    has_next = len(rows) > per_page
    return list(rows[:per_page]), has_next


def resolve_parent(db, parent_id: str) -> Post:
    """The root post a reply attaches to; replies cannot be replied to."""
    parent = db.get(Post, parent_id)
    if parent is None:
        raise PostNotFound(parent_id)
    if parent.parent_id is not None:
        raise InvalidParent(parent_id)
    return parent


def append_post(
    db,
    title: str,
    message: str,
    attachment: str | None = None,
    parent_id: str | None = None,
) -> Post:
    now = datetime.now(timezone.utc)
    parent = resolve_parent(db, parent_id) if parent_id is not None else None
    post = Post(
        parent_id=parent_id,
        title=title or "",
        message=message,
        attachment=attachment,
        created_at=now,
        bumped_at=now,
    )
    db.add(post)
    if parent is not None:
        parent.bumped_at = now
    db.commit()
    db.refresh(post)
    return post
