"""방 생성/조회/강퇴 엔드포인트 통합 테스트"""

import pytest
from fastapi.testclient import TestClient
from starlette.testclient import WebSocketTestSession

from signaling.core.config import Settings
from signaling.main import create_app


def join(ws: WebSocketTestSession, room: str, identity: str, want_owner: bool = False) -> dict:
    ws.send_json({"type": "join", "room": room, "identity": identity, "wantOwner": want_owner})
    return ws.receive_json()


# ===== 방 생성 / 조회 =====


def test_create_room_generates_id(client: TestClient):
    response = client.post("/api/create-room")

    assert response.status_code == 200
    data = response.json()
    assert len(data["roomId"]) == 8
    assert data["joinUrl"] == f"http://testserver/join?room={data['roomId']}"


def test_create_room_with_requested_id(client: TestClient):
    response = client.post("/api/create-room", json={"roomId": "team standup"})

    assert response.json() == {
        "roomId": "team standup",
        "joinUrl": "http://testserver/join?room=team%20standup",
    }


def test_create_room_uses_public_base_url(test_settings: Settings):
    settings = test_settings.model_copy(update={"public_base_url": "https://meet.example.com/"})
    with TestClient(create_app(settings)) as client:
        data = client.post("/api/create-room", json={"roomId": "abc"}).json()

    assert data["joinUrl"] == "https://meet.example.com/join?room=abc"


def test_create_room_does_not_create_state(client: TestClient):
    """방은 첫 join 시점에 생김"""
    room_id = client.post("/api/create-room").json()["roomId"]

    assert client.app.state.relay.directory.has_room(room_id) is False
    assert client.get(f"/api/rooms/{room_id}").json() == {"room": room_id, "participantCount": 0}


def test_room_info_counts_participants(client: TestClient):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "join", "room": "r1"})
        ws.receive_json()

        assert client.get("/api/rooms/r1").json() == {"room": "r1", "participantCount": 1}


def test_room_info_includes_owner(client: TestClient):
    with client.websocket_connect("/ws") as ws:
        join(ws, "r1", "alice", want_owner=True)

        assert client.get("/api/rooms/r1").json() == {
            "room": "r1",
            "participantCount": 1,
            "ownerIdentity": "alice",
        }


# ===== 강퇴 =====


def test_kick_participant(client: TestClient):
    """강퇴 대상은 kicked 수신, 남은 참여자는 peer-left 수신"""
    with client.websocket_connect("/ws") as owner, client.websocket_connect("/ws") as guest:
        join(owner, "r1", "alice", want_owner=True)
        guest_id = join(guest, "r1", "bob")["id"]
        owner.receive_json()

        response = client.post(
            "/api/kick",
            json={"roomId": "r1", "participantIdentity": "bob", "ownerIdentity": "alice"},
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert guest.receive_json() == {"type": "kicked", "reason": "kicked_by_owner"}
        assert owner.receive_json() == {"type": "peer-left", "id": guest_id}
        assert client.get("/api/rooms/r1").json()["participantCount"] == 1


@pytest.mark.parametrize(
    "body",
    [
        None,
        {},
        {"roomId": "r1", "participantIdentity": "bob"},
        {"roomId": "", "participantIdentity": "bob", "ownerIdentity": "alice"},
    ],
)
def test_kick_missing_fields(client: TestClient, body):
    response = client.post("/api/kick", json=body)

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "VALIDATION_ERROR"


@pytest.mark.parametrize(
    "body,status_code,error",
    [
        ({"roomId": "missing", "participantIdentity": "bob", "ownerIdentity": "alice"}, 404, "ROOM_NOT_FOUND"),
        ({"roomId": "r1", "participantIdentity": "bob", "ownerIdentity": "bob"}, 403, "NOT_OWNER"),
        ({"roomId": "r1", "participantIdentity": "dave", "ownerIdentity": "alice"}, 404, "PARTICIPANT_NOT_FOUND"),
    ],
)
def test_kick_errors(client: TestClient, body, status_code, error):
    with client.websocket_connect("/ws") as owner, client.websocket_connect("/ws") as guest:
        join(owner, "r1", "alice", want_owner=True)
        join(guest, "r1", "bob")
        owner.receive_json()

        response = client.post("/api/kick", json=body)

        assert response.status_code == status_code
        assert response.json()["detail"]["error"] == error
        assert client.get("/api/rooms/r1").json()["participantCount"] == 2
