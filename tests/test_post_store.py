from datetime import datetime, timedelta, timezone

import pytest

from db_models import Post
from post_store import (
    InvalidParent,
    PostNotFound,
    append_post,
    get_thread,
    list_threads,
)


def test_get_thread_returns_root_and_replies_in_order(db):
    root = append_post(db, "Hello", "World", attachment="pic.png")
    first = append_post(db, "", "nice", parent_id=root.id)
    second = append_post(db, "", "cool", attachment="clip.mp4", parent_id=root.id)

    found, replies = get_thread(db, root.id)
    assert found.id == root.id
    assert [r.id for r in replies] == [first.id, second.id]


def test_get_thread_unknown_or_reply_id(db):
    root = append_post(db, "Hello", "World")
    reply = append_post(db, "", "nice", parent_id=root.id)
    assert get_thread(db, "missing") is None
    assert get_thread(db, reply.id) is None


def test_reply_bumps_root(db):
    older = append_post(db, "Old", "first thread")
    newer = append_post(db, "New", "second thread")
    posts, _ = list_threads(db)
    assert [p.id for p in posts] == [newer.id, older.id]

    append_post(db, "", "bump", parent_id=older.id)
    posts, _ = list_threads(db)
    assert [p.id for p in posts] == [older.id, newer.id]


def test_list_threads_excludes_replies_and_paginates(db):
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for i in range(5):
        db.add(Post(id=f"t{i}", title=f"T{i}", message="m", created_at=base, bumped_at=base + timedelta(minutes=i)))
    db.add(Post(id="reply", parent_id="t0", title="", message="r", created_at=base, bumped_at=base))
    db.commit()

    page0, has_next = list_threads(db, 0, per_page=2)
    assert [p.id for p in page0] == ["t4", "t3"]
    assert has_next

    page2, has_next = list_threads(db, 2, per_page=2)
    assert [p.id for p in page2] == ["t0"]
    assert not has_next

    clamped, _ = list_threads(db, -3, per_page=2)
    assert [p.id for p in clamped] == ["t4", "t3"]


def test_reply_to_missing_parent(db):
    with pytest.raises(PostNotFound):
        append_post(db, "", "orphan", parent_id="nope")


def test_reply_to_reply_is_rejected(db):
    root = append_post(db, "Hello", "World")
    reply = append_post(db, "", "nice", parent_id=root.id)
    with pytest.raises(InvalidParent):
        append_post(db, "", "nested", parent_id=reply.id)


def test_ids_are_assigned(db):
    a = append_post(db, "A", "a")
    b = append_post(db, "B", "b")
    assert a.id and b.id and a.id != b.id
