"""Media storage backends and image uploads through the posts API."""
import io

import pytest
from botocore.exceptions import ClientError

from appify.services.storage_service import LocalStorage, S3Storage, StorageError

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def test_local_storage_saves_under_owner_folder(tmp_path):
    storage = LocalStorage(base_dir=str(tmp_path), base_url="http://media.test/")

    url = storage.save("42", "posts", b"data", ".png", "image/png")

    assert url.startswith("http://media.test/uploads/posts/42/")
    assert url.endswith(".png")
    stored = tmp_path / url.split("/uploads/", 1)[1]
    assert stored.read_bytes() == b"data"

    assert storage.delete(url) is True
    assert not stored.exists()
    assert storage.delete(url) is False


def test_local_storage_refuses_paths_outside_its_directory(tmp_path):
    base = tmp_path / "media"
    base.mkdir()
    outside = tmp_path / "keep.txt"
    outside.write_text("keep")
    storage = LocalStorage(base_dir=str(base), base_url="http://media.test")

    assert storage.delete("http://media.test/uploads/../keep.txt") is False
    assert storage.delete("http://elsewhere.test/keep.txt") is False
    assert outside.exists()


class FakeS3Client:
    def __init__(self, fail=False):
        self.objects = {}
        self.fail = fail

    def put_object(self, Bucket, Key, Body, ContentType, ACL):
        if self.fail:
            raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, "PutObject")
        self.objects[(Bucket, Key)] = (Body, ContentType, ACL)

    def delete_object(self, Bucket, Key):
        self.objects.pop((Bucket, Key), None)


def test_s3_storage_uploads_and_deletes():
    client = FakeS3Client()
    storage = S3Storage(client=client, bucket="media", public_base_url="https://cdn.test/media")

    url = storage.save("7", "posts", b"img", ".jpg", "image/jpeg")

    assert url.startswith("https://cdn.test/media/posts/7/")
    key = url.split("https://cdn.test/media/", 1)[1]
    assert client.objects[("media", key)] == (b"img", "image/jpeg", "public-read")

    assert storage.delete(url) is True
    assert client.objects == {}
    assert storage.delete("https://other.test/posts/7/x.jpg") is False


def test_s3_storage_errors_are_wrapped():
    storage = S3Storage(client=FakeS3Client(fail=True), bucket="media", public_base_url="https://cdn.test/media")

    with pytest.raises(StorageError):
        storage.save("7", "posts", b"img", ".jpg", "image/jpeg")


def test_create_post_with_image_only(client, make_user, upload_dir):
    alice = make_user()

    response = client.post(
        "/posts",
        data={"is_public": "true"},
        files={"image": ("photo.png", io.BytesIO(PNG_BYTES), "image/png")},
        headers=alice["headers"],
    )

    assert response.status_code == 201, response.text
    post = response.json()
    assert post["content"] is None
    assert "/uploads/posts/" in post["image_url"]
    stored = upload_dir / post["image_url"].split("/uploads/", 1)[1]
    assert stored.read_bytes() == PNG_BYTES


def test_uploaded_image_is_served(client, make_user):
    alice = make_user()
    post = client.post(
        "/posts",
        data={"content": "look"},
        files={"image": ("photo.png", io.BytesIO(PNG_BYTES), "image/png")},
        headers=alice["headers"],
    ).json()

    response = client.get(post["image_url"].replace("http://testserver", ""))

    assert response.status_code == 200
    assert response.content == PNG_BYTES


def test_unsupported_image_type_is_rejected(client, make_user):
    alice = make_user()

    response = client.post(
        "/posts",
        data={"content": "doc"},
        files={"image": ("notes.txt", io.BytesIO(b"plain text"), "text/plain")},
        headers=alice["headers"],
    )

    assert response.status_code == 400
    assert response.json()["detail"].startswith("Invalid file type")


def test_oversized_image_is_rejected(client, make_user, monkeypatch):
    from appify.core.config import settings

    monkeypatch.setattr(settings, "MAX_IMAGE_SIZE_MB", 0)
    alice = make_user()

    response = client.post(
        "/posts",
        files={"image": ("photo.png", io.BytesIO(PNG_BYTES), "image/png")},
        headers=alice["headers"],
    )

    assert response.status_code == 400
    assert response.json()["detail"].startswith("File too large")


def test_deleting_post_removes_its_image(client, make_user, upload_dir):
    alice = make_user()
    post = client.post(
        "/posts",
        files={"image": ("photo.png", io.BytesIO(PNG_BYTES), "image/png")},
        headers=alice["headers"],
    ).json()
    stored = upload_dir / post["image_url"].split("/uploads/", 1)[1]
    assert stored.exists()

    assert client.delete(f"/posts/{post['id']}", headers=alice["headers"]).status_code == 204

    assert not stored.exists()
