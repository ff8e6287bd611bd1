"""Connection requests, connections and their notifications."""

import pytest

from conftest import error_of, register


@pytest.fixture
def alice(client):
    return register(client, "alice@example.com")


@pytest.fixture
def bob(client):
    return register(client, "bob@example.com")


def _request(client, sender, recipient):
    return client.post("/connection/request", json={"recipient_id": recipient["id"]}, headers=sender["headers"])


def _connect(client, a, b):
    assert _request(client, a, b).status_code == 201
    accepted = client.post("/connection/accept", json={"sender_id": a["id"]}, headers=b["headers"])
    assert accepted.status_code == 200, accepted.text


def test_send_request(client, alice, bob):
    response = _request(client, alice, bob)

    assert response.status_code == 201
    body = response.json()
    assert body["type"] == "connect_request"
    assert body["connect_request"] == "pending"
    assert body["payload"]["from"] == alice["id"]
    assert body["content"] == "alice sent you a connection request"


def test_request_errors(client, alice, bob):
    _request(client, alice, bob)

    to_self = _request(client, alice, alice)
    duplicate = _request(client, alice, bob)
    unknown = client.post(
        "/connection/request",
        json={"recipient_id": "00000000-0000-0000-0000-000000000000"},
        headers=alice["headers"],
    )

    assert to_self.status_code == 400
    assert duplicate.status_code == 409
    assert error_of(duplicate)["code"] == "DUPLICATE_REQUEST"
    assert unknown.status_code == 404


def test_accept_creates_connection_both_ways(client, alice, bob):
    _connect(client, alice, bob)

    alice_list = client.get("/connection/list", headers=alice["headers"]).json()
    bob_list = client.get("/connection/list", headers=bob["headers"]).json()
    status = client.get(f"/connection/status/{bob['id']}", headers=alice["headers"]).json()
    again = _request(client, bob, alice)

    assert [c["connected_user"]["email"] for c in alice_list["connections"]] == ["bob@example.com"]
    assert [c["connected_user"]["id"] for c in bob_list["connections"]] == [alice["id"]]
    assert status == {
        "user_id": bob["id"],
        "connected": True,
        "request_status": "accepted",
        "request_direction": "sent",
    }
    assert again.status_code == 409
    assert error_of(again)["code"] == "CONNECTION_ALREADY_EXISTS"


def test_accept_without_request(client, alice, bob):
    response = client.post("/connection/accept", json={"sender_id": bob["id"]}, headers=alice["headers"])

    assert response.status_code == 404
    assert error_of(response)["code"] == "CONNECTION_REQUEST_NOT_FOUND"


def test_reject_then_request_again(client, alice, bob):
    _request(client, alice, bob)

    rejected = client.post("/connection/reject", json={"sender_id": alice["id"]}, headers=bob["headers"])
    status = client.get(f"/connection/status/{alice['id']}", headers=bob["headers"]).json()
    retry = _request(client, alice, bob)

    assert rejected.json()["connect_request"] == "rejected"
    assert status["connected"] is False
    assert status["request_status"] == "rejected"
    assert status["request_direction"] == "received"
    assert retry.status_code == 201


def test_withdraw_request(client, alice, bob):
    _request(client, alice, bob)

    withdrawn = client.request(
        "DELETE", "/connection/withdraw", json={"recipient_id": bob["id"]}, headers=alice["headers"]
    )
    again = client.request("DELETE", "/connection/withdraw", json={"recipient_id": bob["id"]}, headers=alice["headers"])
    sent = client.get("/connection/sent", params={"recipient": bob["id"]}, headers=alice["headers"]).json()

    assert withdrawn.json()["connect_request"] == "withdrawn"
    assert again.status_code == 404
    assert sent["total"] == 1
    assert sent["requests"][0]["connect_request"] == "withdrawn"
    assert sent["requests"][0]["recipient"]["email"] == "bob@example.com"


def test_remove_connection(client, alice, bob):
    _connect(client, alice, bob)

    removed = client.request("DELETE", "/connection/remove", json={"user_id": alice["id"]}, headers=bob["headers"])
    missing = client.request("DELETE", "/connection/remove", json={"user_id": alice["id"]}, headers=bob["headers"])
    status = client.get(f"/connection/status/{bob['id']}", headers=alice["headers"]).json()

    assert removed.json() == {"user_id": bob["id"], "removed_user_id": alice["id"]}
    assert missing.status_code == 404
    assert client.get("/connection/list", headers=alice["headers"]).json()["total"] == 0
    assert status["connected"] is False
    assert status["request_status"] == "disconnected"
    assert _request(client, alice, bob).status_code == 201


def test_list_connections_search(client, alice, bob):
    carol = register(client, "carol@example.com")
    _connect(client, alice, bob)
    _connect(client, carol, alice)

    everyone = client.get("/connection/list", headers=alice["headers"]).json()
    carols = client.get("/connection/list", params={"search": "CAROL"}, headers=alice["headers"]).json()

    assert everyone["total"] == 2
    assert [c["connected_user"]["id"] for c in carols["connections"]] == [carol["id"]]


def test_status_with_self_rejected(client, alice):
    response = client.get(f"/connection/status/{alice['id']}", headers=alice["headers"])

    assert response.status_code == 400


def test_suggested_excludes_open_and_connected(client, alice, bob):
    carol = register(client, "carol@example.com")
    dave = register(client, "dave@example.com")
    _connect(client, alice, bob)
    _request(client, carol, alice)

    suggested = client.get("/connection/suggested", headers=alice["headers"]).json()

    assert [u["user_id"] for u in suggested["users"]] == [dave["id"]]
    assert suggested["total"] == 1
    assert carol["id"] not in [u["user_id"] for u in suggested["users"]]


def test_notifications_and_mark_read(client, alice, bob):
    carol = register(client, "carol@example.com")
    _request(client, alice, bob)
    _request(client, carol, bob)
    client.post("/connection/accept", json={"sender_id": alice["id"]}, headers=bob["headers"])

    inbox = client.get("/connection/notifications", headers=bob["headers"]).json()
    pending = client.get("/connection/notifications", params={"status": "pending"}, headers=bob["headers"]).json()
    alice_inbox = client.get("/connection/notifications", headers=alice["headers"]).json()
    bad = client.get("/connection/notifications", params={"status": "lost"}, headers=bob["headers"])

    assert inbox["total"] == 2
    assert inbox["unread"] == 1
    assert inbox["pending"] == 1
    assert [n["payload"]["from"] for n in pending["notifications"]] == [carol["id"]]
    assert alice_inbox["notifications"][0]["type"] == "connection_accepted"
    assert bad.status_code == 400

    notification_id = pending["notifications"][0]["id"]
    marked = client.post("/connection/notifications/read", json={"notification_id": notification_id}, headers=bob["headers"])
    foreign = client.post(
        "/connection/notifications/read", json={"notification_id": notification_id}, headers=alice["headers"]
    )

    assert marked.json()["read"] is True
    assert client.get("/connection/notifications", headers=bob["headers"]).json()["unread"] == 0
    assert foreign.status_code == 404
