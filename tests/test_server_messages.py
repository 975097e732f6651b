"""Message history and sending between users."""
from conftest import make_friends


def send(client, headers, friend_id, content):
    return client.post(f"/messages/{friend_id}", json={"content": content}, headers=headers)


class TestSendMessage:
    def test_requires_accepted_friendship(self, client, alice, bob):
        _, headers = alice
        resp = send(client, headers, bob[0]["id"], "hi")
        assert resp.status_code == 403
        assert resp.json()["detail"] == "You need to be friends to send messages"

    def test_pending_friendship_cannot_message(self, client, alice, bob):
        _, headers = alice
        client.post("/friends/requests", json={"target_user_id": bob[0]["id"]}, headers=headers)
        assert send(client, headers, bob[0]["id"], "hi").status_code == 403

    def test_blank_message_rejected(self, client, alice, bob):
        make_friends(client, alice, bob)
        assert send(client, alice[1], bob[0]["id"], "   ").status_code == 400

    def test_stored_message_is_trimmed_and_has_sender(self, client, alice, bob):
        friendship = make_friends(client, alice, bob)
        resp = send(client, alice[1], bob[0]["id"], "  hello bob  ")
        assert resp.status_code == 201
        body = resp.json()
        assert body["content"] == "hello bob"
        assert body["sender_id"] == alice[0]["id"]
        assert body["friendship_id"] == friendship["id"]
        assert body["sender"]["name"] == "Alice"
        assert body["sender"]["image"] == "https://example.com/alice.png"

    def test_unknown_recipient_is_404(self, client, alice):
        assert send(client, alice[1], 31337, "hi").status_code == 404


class TestMessageHistory:
    def test_history_is_chronological_and_shared(self, client, alice, bob):
        make_friends(client, alice, bob)
        (alice_user, alice_headers), (bob_user, bob_headers) = alice, bob
        send(client, alice_headers, bob_user["id"], "one")
        send(client, bob_headers, alice_user["id"], "two")
        send(client, alice_headers, bob_user["id"], "three")

        from_alice = client.get(f"/messages/{bob_user['id']}", headers=alice_headers).json()
        from_bob = client.get(f"/messages/{alice_user['id']}", headers=bob_headers).json()
        assert [m["content"] for m in from_alice] == ["one", "two", "three"]
        assert from_alice == from_bob

    def test_after_message_id_returns_only_newer(self, client, alice, bob):
        make_friends(client, alice, bob)
        first = send(client, alice[1], bob[0]["id"], "old").json()
        send(client, alice[1], bob[0]["id"], "new")
        resp = client.get(f"/messages/{bob[0]['id']}", params={"after_message_id": first["id"]}, headers=alice[1])
        assert [m["content"] for m in resp.json()] == ["new"]

    def test_strangers_have_empty_history(self, client, alice, bob):
        resp = client.get(f"/messages/{bob[0]['id']}", headers=alice[1])
        assert resp.status_code == 200
        assert resp.json() == []

    def test_other_conversations_are_not_visible(self, client, alice, bob, carol):
        make_friends(client, alice, bob)
        make_friends(client, alice, carol)
        send(client, alice[1], bob[0]["id"], "for bob")
        send(client, alice[1], carol[0]["id"], "for carol")
        resp = client.get(f"/messages/{alice[0]['id']}", headers=carol[1])
        assert [m["content"] for m in resp.json()] == ["for carol"]
