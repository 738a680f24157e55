"""
Notifications API: recipient-only listing, read state and deletion.
"""


def _claim(client, post, user):
    assert client.put(f"/api/posts/{post['id']}/claim", headers=user["headers"]).status_code == 200


class TestNotificationsApi:
    def test_list_newest_first_with_unread_count(self, client, alice, bob, carol, make_post):
        first = make_post(alice, title="Apples")
        second = make_post(alice, title="Pears")
        _claim(client, first, bob)
        _claim(client, second, carol)

        res = client.get("/api/notifications", headers=alice["headers"])
        assert res.status_code == 200
        payload = res.json()
        assert payload["unreadCount"] == 2
        assert payload["pagination"] == {"total": 2, "page": 1, "pages": 1}
        newest = payload["data"][0]
        assert newest["type"] == "claim_request"
        assert newest["read"] is False
        assert newest["sender"]["id"] == carol["id"]
        assert newest["post"] == {"id": second["id"], "title": "Pears"}
        assert newest["redirectUrl"] == f"/posts/{second['id']}"

    def test_requires_auth(self, client):
        assert client.get("/api/notifications").status_code == 401

    def test_mark_one_read(self, client, alice, bob, make_post):
        _claim(client, make_post(alice), bob)
        note = client.get("/api/notifications", headers=alice["headers"]).json()["data"][0]

        res = client.put(f"/api/notifications/{note['id']}/read", headers=alice["headers"])
        assert res.status_code == 200
        assert res.json()["data"]["read"] is True
        assert res.json()["data"]["readAt"] is not None

        payload = client.get("/api/notifications", headers=alice["headers"]).json()
        assert payload["unreadCount"] == 0
        unread = client.get("/api/notifications", params={"unread": "true"}, headers=alice["headers"]).json()
        assert unread["count"] == 0

    def test_mark_all_read(self, client, alice, bob, carol, make_post):
        _claim(client, make_post(alice), bob)
        _claim(client, make_post(alice), carol)
        res = client.put("/api/notifications/read-all", headers=alice["headers"])
        assert res.status_code == 200
        assert res.json()["data"] == {"markedCount": 2}
        assert client.get("/api/notifications", headers=alice["headers"]).json()["unreadCount"] == 0

    def test_other_users_cannot_touch(self, client, alice, bob, make_post):
        _claim(client, make_post(alice), bob)
        note = client.get("/api/notifications", headers=alice["headers"]).json()["data"][0]
        assert client.put(f"/api/notifications/{note['id']}/read", headers=bob["headers"]).status_code == 403
        assert client.delete(f"/api/notifications/{note['id']}", headers=bob["headers"]).status_code == 403
        assert client.get("/api/notifications", headers=bob["headers"]).json()["count"] == 0

    def test_delete(self, client, alice, bob, make_post):
        _claim(client, make_post(alice), bob)
        note = client.get("/api/notifications", headers=alice["headers"]).json()["data"][0]
        res = client.delete(f"/api/notifications/{note['id']}", headers=alice["headers"])
        assert res.status_code == 200
        assert client.get("/api/notifications", headers=alice["headers"]).json()["count"] == 0
        assert client.delete(f"/api/notifications/{note['id']}", headers=alice["headers"]).status_code == 404
