"""
Claim and status endpoints end to end: the main path, refusals, reverts and the notifications they emit.
"""
from datetime import timedelta

import pytest

from foodshare.core.errors import ConflictError
from foodshare.core.timeutil import utcnow
from foodshare.db.session import SessionLocal
from foodshare.models.notification import Notification
from foodshare.models.post import Post, PostStatusEvent
from foodshare.models.user import User
from foodshare.services import post_service


def _notification_types(db, user_id):
    rows = db.query(Notification).filter(Notification.recipient_id == user_id).order_by(Notification.id).all()
    return [n.type for n in rows]


class TestClaim:
    def test_claim_sets_claimer_and_notifies_owner(self, client, alice, bob, make_post, db):
        post = make_post(alice)
        res = client.put(f"/api/posts/{post['id']}/claim", headers=bob["headers"])
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["status"] == "Claimed"
        assert data["claimedBy"]["id"] == bob["id"]
        assert data["claimedAt"] is not None
        assert [e["status"] for e in data["statusTimeline"]] == ["Posted", "Claimed"]
        assert data["statusTimeline"][-1]["updatedBy"]["id"] == bob["id"]

        note = db.query(Notification).filter(Notification.recipient_id == alice["id"]).one()
        assert note.type == "claim_request"
        assert note.sender_id == bob["id"]
        assert note.post_id == post["id"]
        assert note.redirect_url == f"/posts/{post['id']}"
        assert note.message == 'Bob has claimed your post "Fresh bread"'

    def test_owner_cannot_claim(self, client, alice, make_post):
        post = make_post(alice)
        res = client.put(f"/api/posts/{post['id']}/claim", headers=alice["headers"])
        assert res.status_code == 403
        assert res.json()["message"] == "You cannot claim your own post"

    def test_second_claim_conflicts(self, client, alice, bob, carol, make_post):
        post = make_post(alice)
        assert client.put(f"/api/posts/{post['id']}/claim", headers=bob["headers"]).status_code == 200
        res = client.put(f"/api/posts/{post['id']}/claim", headers=carol["headers"])
        assert res.status_code == 409
        assert res.json()["message"] == "Cannot claim post that is in Claimed status"
        detail = client.get(f"/api/posts/{post['id']}").json()["data"]
        assert detail["claimedBy"]["id"] == bob["id"]

    def test_overdue_post_cannot_be_claimed(self, client, alice, bob, make_post, db):
        post = make_post(alice)
        db.query(Post).filter(Post.id == post["id"]).update({Post.expiry_date: utcnow() - timedelta(minutes=5)})
        db.commit()
        res = client.put(f"/api/posts/{post['id']}/claim", headers=bob["headers"])
        assert res.status_code == 409
        assert res.json()["message"] == "This post has expired"

    def test_claim_missing_post(self, client, bob):
        assert client.put("/api/posts/404/claim", headers=bob["headers"]).status_code == 404

    def test_claim_on_stale_read_loses_to_concurrent_claim(self, client, alice, bob, carol, make_post, db):
        """Carol read the post while it was Posted; Bob's claim lands first, so hers must conflict."""
        post = make_post(alice)
        stale = SessionLocal()
        try:
            stale_post = stale.get(Post, post["id"])  # noqa: F841 -- keep a strong ref so the session copy stays stale
            carol_user = stale.get(User, carol["id"])

            assert client.put(f"/api/posts/{post['id']}/claim", headers=bob["headers"]).status_code == 200

            with pytest.raises(ConflictError, match="Post status changed concurrently, reload and retry"):
                post_service.claim_post(stale, post["id"], carol_user)
        finally:
            stale.close()

        row = db.get(Post, post["id"])
        assert row.status == "Claimed"
        assert row.claimed_by_id == bob["id"]
        assert db.query(PostStatusEvent).filter(PostStatusEvent.post_id == post["id"]).count() == 2
        assert _notification_types(db, alice["id"]) == ["claim_request"]


class TestStatusUpdates:
    def test_full_donation_path(self, client, alice, bob, make_post, set_status, db):
        post = make_post(alice)
        client.put(f"/api/posts/{post['id']}/claim", headers=bob["headers"])

        res = set_status(post["id"], bob, "Picked Up")
        assert res.status_code == 200
        assert res.json()["data"]["pickedUpAt"] is not None

        res = set_status(post["id"], alice, "Completed")
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["status"] == "Completed"
        assert data["completedAt"] is not None
        assert [e["status"] for e in data["statusTimeline"]] == ["Posted", "Claimed", "Picked Up", "Completed"]

        assert _notification_types(db, alice["id"]) == ["claim_request", "pickup_confirmed"]
        assert _notification_types(db, bob["id"]) == ["post_completed"]
        assert db.get(User, bob["id"]).donations_received == 1
        assert db.get(User, alice["id"]).donations_made == 1

    def test_completed_request_does_not_count_as_donation(self, client, alice, bob, make_post, set_status, db):
        post = make_post(alice, type="Request")
        client.put(f"/api/posts/{post['id']}/claim", headers=bob["headers"])
        set_status(post["id"], bob, "Picked Up")
        assert set_status(post["id"], alice, "Completed").status_code == 200
        assert db.get(User, bob["id"]).donations_received == 0

    def test_cannot_skip_pickup(self, client, alice, bob, make_post, set_status):
        post = make_post(alice)
        client.put(f"/api/posts/{post['id']}/claim", headers=bob["headers"])
        res = set_status(post["id"], alice, "Completed")
        assert res.status_code == 409
        assert res.json()["message"] == "Cannot change status from Claimed to Completed"

    def test_claimer_cannot_complete(self, client, alice, bob, make_post, set_status):
        post = make_post(alice)
        client.put(f"/api/posts/{post['id']}/claim", headers=bob["headers"])
        set_status(post["id"], bob, "Picked Up")
        res = set_status(post["id"], bob, "Completed")
        assert res.status_code == 403
        assert res.json()["message"] == "Only the post owner can mark as completed"

    def test_bystander_is_forbidden(self, client, alice, bob, carol, make_post, set_status):
        post = make_post(alice)
        client.put(f"/api/posts/{post['id']}/claim", headers=bob["headers"])
        assert set_status(post["id"], carol, "Picked Up").status_code == 403

    def test_invalid_status(self, client, alice, make_post, set_status):
        post = make_post(alice)
        res = set_status(post["id"], alice, "Eaten")
        assert res.status_code == 400
        assert res.json()["message"] == "Please provide a valid status"
        res = client.put(f"/api/posts/{post['id']}/status", json={}, headers=alice["headers"])
        assert res.status_code == 400

    def test_owner_revert_clears_claimer(self, client, alice, bob, make_post, set_status):
        post = make_post(alice)
        client.put(f"/api/posts/{post['id']}/claim", headers=bob["headers"])
        res = set_status(post["id"], alice, "Posted")
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["status"] == "Posted"
        assert data["claimedBy"] is None
        # another user can now claim it
        assert client.put(f"/api/posts/{post['id']}/claim", headers=bob["headers"]).status_code == 200

    def test_claimer_gives_claim_back(self, client, alice, bob, make_post, set_status, db):
        post = make_post(alice)
        client.put(f"/api/posts/{post['id']}/claim", headers=bob["headers"])
        res = set_status(post["id"], bob, "Posted")
        assert res.status_code == 200
        assert res.json()["data"]["claimedBy"] is None
        assert _notification_types(db, alice["id"]) == ["claim_request", "claim_rejected"]

    def test_owner_reverts_pickup(self, client, alice, bob, make_post, set_status, db):
        post = make_post(alice)
        client.put(f"/api/posts/{post['id']}/claim", headers=bob["headers"])
        set_status(post["id"], bob, "Picked Up")
        res = set_status(post["id"], alice, "Claimed")
        assert res.status_code == 200
        assert res.json()["data"]["claimedBy"]["id"] == bob["id"]
        assert _notification_types(db, bob["id"]) == ["claim_approved"]

    def test_unclaimed_post_cannot_be_set_claimed(self, client, alice, make_post, set_status):
        post = make_post(alice)
        assert set_status(post["id"], alice, "Claimed").status_code == 409

    def test_cancel_and_repost(self, client, alice, make_post, set_status):
        post = make_post(alice)
        assert set_status(post["id"], alice, "Cancelled").status_code == 200
        assert set_status(post["id"], alice, "Posted").status_code == 200

    def test_completed_is_final(self, client, alice, completed_post, set_status):
        for status in ("Posted", "Claimed", "Cancelled"):
            assert set_status(completed_post["id"], alice, status).status_code == 409
