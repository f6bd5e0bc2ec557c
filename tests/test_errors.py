"""Unexpected failures: generic 500 body, like races and orphaned uploads."""
import io

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from appify.api.v1.endpoints import auth as auth_endpoints
from appify.api.v1.endpoints import posts as posts_endpoints
from appify.models.post import Post

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def test_unexpected_error_returns_generic_500(lenient_client, monkeypatch):
    async def _broken_authenticate(db, email, password):
        raise RuntimeError("database exploded")

    monkeypatch.setattr(auth_endpoints, "authenticate_user", _broken_authenticate)

    response = lenient_client.post("/auth/login", json={"email": "a@example.com", "password": "x"})

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}


def test_concurrent_like_insert_is_a_conflict_and_rolls_back(client, make_user, make_post, monkeypatch):
    alice = make_user()
    post = make_post(alice["headers"])

    async def _lost_race(db, post_id, user_id):
        await db.execute(update(Post).where(Post.id == post_id).values(likes_count=Post.likes_count + 1))
        raise IntegrityError("INSERT INTO likes", {}, Exception("UNIQUE constraint failed"))

    monkeypatch.setattr(posts_endpoints, "toggle_post_like", _lost_race)

    response = client.post(f"/posts/{post['id']}/toggle-like", headers=alice["headers"])

    assert response.status_code == 409
    assert client.get(f"/posts/{post['id']}", headers=alice["headers"]).json()["likes_count"] == 0


def test_failed_post_insert_removes_uploaded_image(lenient_client, upload_dir, monkeypatch):
    registered = lenient_client.post(
        "/auth/register",
        json={"first_name": "Alice", "last_name": "L", "email": "alice@example.com", "password": "pw"},
    ).json()
    headers = {"Authorization": f"Bearer {registered['access_token']}"}
    stored_before = set(upload_dir.rglob("*"))

    async def _broken_create_post(db, user_id, **kwargs):
        raise RuntimeError("insert failed")

    monkeypatch.setattr(posts_endpoints, "create_post", _broken_create_post)

    response = lenient_client.post(
        "/posts",
        data={"content": "look"},
        files={"image": ("photo.png", io.BytesIO(PNG_BYTES), "image/png")},
        headers=headers,
    )

    assert response.status_code == 500
    assert {p for p in upload_dir.rglob("*") if p.is_file()} == {p for p in stored_before if p.is_file()}
