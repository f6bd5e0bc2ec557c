"""Threaded comments on posts: nesting, counters, access and deletion."""


def _comment(client, headers, post_id, content):
    response = client.post(f"/posts/{post_id}/comments", json={"content": content}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def _reply(client, headers, comment_id, content):
    response = client.post(f"/comments/{comment_id}/replies", json={"content": content}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def _shape(nodes):
    return [(n["content"], n["depth"], _shape(n["replies"])) for n in nodes]


def test_comments_come_back_as_nested_threads(client, make_user, make_post):
    alice = make_user()
    bob = make_user()
    post = make_post(alice["headers"])
    c1 = _comment(client, alice["headers"], post["id"], "c1")
    _comment(client, bob["headers"], post["id"], "c2")
    r1 = _reply(client, bob["headers"], c1["id"], "r1")
    _reply(client, alice["headers"], c1["id"], "r2")
    _reply(client, alice["headers"], r1["id"], "rr")

    page = client.get(f"/posts/{post['id']}/comments", headers=bob["headers"]).json()

    assert page["total"] == 2
    assert page["limit"] == 5
    assert page["offset"] == 0
    assert _shape(page["comments"]) == [
        ("c1", 0, [("r1", 1, [("rr", 2, [])]), ("r2", 1, [])]),
        ("c2", 0, []),
    ]
    assert r1["parent_id"] == c1["id"]
    assert r1["post_id"] == post["id"]


def test_only_top_level_comments_are_counted(client, make_user, make_post):
    alice = make_user()
    post = make_post(alice["headers"])
    top = _comment(client, alice["headers"], post["id"], "top")
    reply = _reply(client, alice["headers"], top["id"], "reply")

    def comments_count():
        return client.get(f"/posts/{post['id']}", headers=alice["headers"]).json()["comments_count"]

    assert comments_count() == 1
    assert client.delete(f"/comments/{reply['id']}", headers=alice["headers"]).status_code == 204
    assert comments_count() == 1
    assert client.delete(f"/comments/{top['id']}", headers=alice["headers"]).status_code == 204
    assert comments_count() == 0


def test_deleting_comment_removes_its_replies(client, make_user, make_post):
    alice = make_user()
    post = make_post(alice["headers"])
    top = _comment(client, alice["headers"], post["id"], "top")
    reply = _reply(client, alice["headers"], top["id"], "reply")
    nested = _reply(client, alice["headers"], reply["id"], "nested")

    client.delete(f"/comments/{top['id']}", headers=alice["headers"])

    page = client.get(f"/posts/{post['id']}/comments", headers=alice["headers"]).json()
    assert page["comments"] == []
    assert client.post(f"/comments/{nested['id']}/toggle-like", headers=alice["headers"]).status_code == 404


def test_blank_comment_is_rejected(client, make_user, make_post):
    alice = make_user()
    post = make_post(alice["headers"])

    response = client.post(f"/posts/{post['id']}/comments", json={"content": "   "}, headers=alice["headers"])

    assert response.status_code == 400


def test_only_author_can_delete_comment(client, make_user, make_post):
    alice = make_user()
    bob = make_user()
    post = make_post(alice["headers"])
    comment = _comment(client, bob["headers"], post["id"], "bob's")

    response = client.delete(f"/comments/{comment['id']}", headers=alice["headers"])

    assert response.status_code == 403
    assert client.delete(f"/comments/{comment['id']}", headers=bob["headers"]).status_code == 204
    assert client.delete(f"/comments/{comment['id']}", headers=bob["headers"]).status_code == 404


def test_private_post_comments_are_owner_only(client, make_user, make_post):
    alice = make_user()
    bob = make_user()
    post = make_post(alice["headers"], "secret", is_public=False)
    comment = _comment(client, alice["headers"], post["id"], "note to self")

    assert client.get(f"/posts/{post['id']}/comments", headers=bob["headers"]).status_code == 403
    assert client.post(
        f"/posts/{post['id']}/comments", json={"content": "hi"}, headers=bob["headers"]
    ).status_code == 403
    assert client.post(
        f"/comments/{comment['id']}/replies", json={"content": "hi"}, headers=bob["headers"]
    ).status_code == 403
    assert client.post(f"/posts/{post['id']}/toggle-like", headers=bob["headers"]).status_code == 403


def test_comment_window_paginates_flat_rows(client, make_user, make_post):
    alice = make_user()
    post = make_post(alice["headers"])
    for i in range(3):
        _comment(client, alice["headers"], post["id"], f"c{i}")

    page = client.get(
        f"/posts/{post['id']}/comments", params={"limit": 1, "offset": 1}, headers=alice["headers"]
    ).json()

    assert [c["content"] for c in page["comments"]] == ["c1", "c2"]
    assert page["total"] == 3
