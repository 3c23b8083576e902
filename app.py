from __future__ import annotations

import hmac
import os
import secrets

from flask import (
    Flask,
    abort,
    g,
    has_request_context,
    redirect,
    render_template,
    request,
    send_from_directory,
    session,
)
from sqlalchemy.exc import SQLAlchemyError

from attachments import UPLOAD_URL_PREFIX, env_bool
from db_models import SessionLocal, init_db
from post_store import (
    MAX_PAGE,
    InvalidParent,
    PostNotFound,
    append_post,
    get_thread,
    list_threads,
    resolve_parent,
)
from thread_view import (
    MESSAGE_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    build_view_model,
    iter_reply_views,
    render_board,
    render_thread,
)
import uploads

app = Flask(__name__)

SESSION_COOKIE_SECURE = env_bool("SESSION_COOKIE_SECURE", default=False)
SESSION_COOKIE_SAMESITE = os.environ.get("SESSION_COOKIE_SAMESITE", "Lax")
MAX_UPLOAD_MB = int(os.environ.get("MAX_UPLOAD_MB", "50"))

app.secret_key = os.environ.get("APP_SECRET", "dev-secret-key")
app.config.update(
    SESSION_COOKIE_SECURE=SESSION_COOKIE_SECURE,
    SESSION_COOKIE_HTTPONLY=True,
    SESSION_COOKIE_SAMESITE=SESSION_COOKIE_SAMESITE,
    MAX_CONTENT_LENGTH=MAX_UPLOAD_MB * 1024 * 1024,
)

# Ensure database tables and the upload directory exist on startup
init_db()
uploads.ensure_upload_dir()


# -----------------------------
# DB/session helpers
# -----------------------------

def get_db():
    if "db" not in g:
        g.db = SessionLocal()
    return g.db


@app.teardown_appcontext
def shutdown_session(exception=None):
    db = g.pop("db", None)
    if db is not None:
        if exception:
            db.rollback()
        db.close()


# -----------------------------
# CSRF helpers
# -----------------------------

def generate_csrf_token() -> str:
    token = session.get("csrf_token")
    if not token:
        token = secrets.token_urlsafe(32)
        session["csrf_token"] = token
    return token


def require_csrf():
    token = session.get("csrf_token")
    submitted = request.form.get("csrf_token") or request.headers.get("X-CSRF-Token")
    if not token or not submitted or not hmac.compare_digest(token, submitted):
        abort(400)


@app.context_processor
def inject_csrf():
    if not has_request_context():
        return {}
    return {"csrf_token": generate_csrf_token()}


# -----------------------------
# Routes
# -----------------------------

@app.route("/")
def index():
    page = request.args.get("page", 0, type=int)
    page = min(max(page, 0), MAX_PAGE)
    posts, has_next = list_threads(get_db(), page)
    return render_board((build_view_model(p) for p in posts), page, has_next)


@app.route("/post/<post_id>")
def view_post(post_id: str):
    thread = get_thread(get_db(), post_id)
    if thread is None:
        abort(404)
    root, replies = thread
    return render_thread(build_view_model(root), iter_reply_views(replies))


@app.route("/submit", methods=["POST"])
def submit():
    require_csrf()
    db = get_db()

    parent_id = (request.form.get("parent_id") or "").strip() or None
    title = (request.form.get("title") or "").strip()
    message = request.form.get("message") or ""

    if not message.strip() or len(message) > MESSAGE_MAX_LENGTH:
        abort(400)
    if len(title) > TITLE_MAX_LENGTH:
        abort(400)
    if parent_id is None and not title:
        abort(400)

    if parent_id is not None:
        try:
            resolve_parent(db, parent_id)
        except PostNotFound:
            abort(404)
        except InvalidParent:
            abort(400)

    try:
        attachment = uploads.save_upload(request.files.get("file"))
    except OSError as exc:
        print(f"[upload] Failed to store upload: {exc}")
        abort(500)

    try:
        post = append_post(db, title, message, attachment=attachment, parent_id=parent_id)
    except (PostNotFound, InvalidParent) as exc:
        uploads.discard_upload(attachment)
        abort(404 if isinstance(exc, PostNotFound) else 400)
    except SQLAlchemyError as exc:
        db.rollback()
        uploads.discard_upload(attachment)
        print(f"[db] Failed to save post: {exc}")
        abort(500)

    if post.parent_id:
        print(f"[board] Reply {post.id} added to {post.parent_id}")
        return redirect(f"/post/{post.parent_id}", code=303)
    print(f"[board] Thread {post.id} created")
    return redirect("/", code=303)


@app.route(f"{UPLOAD_URL_PREFIX}/<path:name>")
def uploaded_file(name: str):
    return send_from_directory(uploads.UPLOAD_DIR.resolve(), name)


@app.errorhandler(404)
def not_found(exc):
    return render_template("404.html"), 404


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 8080)), debug=False)
