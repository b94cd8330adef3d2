"""Tests bout en bout du canal temps réel (/ws)"""

import pytest
from starlette.websockets import WebSocketDisconnect


def test_subscriber_receives_task_created(client):
    """Le payload diffusé est identique à la réponse HTTP"""
    with client.websocket_connect("/ws") as ws:
        response = client.post("/api/tasks", json={"title": "Write spec", "day": "monday"})
        task = response.json()["task"]
        event = ws.receive_json()

    assert task["priority"] == 1
    assert event == {"type": "task_created", "task": task}


def test_task_events_in_publish_order(client, make_task):
    with client.websocket_connect("/ws") as ws:
        a = make_task("A")
        b = make_task("B")
        client.put(f"/api/tasks/{a['id']}", json={"completed": True})
        client.post("/api/tasks/reorder", json={"day": "monday", "taskIds": [b["id"], a["id"]]})
        client.delete(f"/api/tasks/{b['id']}")

        events = [ws.receive_json() for _ in range(5)]

    assert [e["type"] for e in events] == [
        "task_created",
        "task_created",
        "task_updated",
        "tasks_reordered",
        "task_deleted",
    ]
    assert events[2]["task"]["completed"] == True
    assert events[3] == {"type": "tasks_reordered", "day": "monday", "taskIds": [b["id"], a["id"]]}
    assert events[4] == {"type": "task_deleted", "id": b["id"]}


def test_failed_mutation_publishes_nothing(client, make_task):
    with client.websocket_connect("/ws") as ws:
        assert client.delete("/api/tasks/does-not-exist").status_code == 404
        assert client.post("/api/tasks", json={"day": "monday"}).status_code == 400
        make_task("Témoin")

        event = ws.receive_json()

    assert event["type"] == "task_created"
    assert event["task"]["title"] == "Témoin"


def test_session_events(client):
    with client.websocket_connect("/ws") as ws:
        session = client.post(
            "/api/pomodoro/sessions", json={"duration": 1500, "type": "work"}
        ).json()["session"]
        completed = client.post(f"/api/pomodoro/sessions/{session['id']}/complete").json()["session"]

        started_event = ws.receive_json()
        completed_event = ws.receive_json()

    assert started_event == {"type": "session_started", "session": session}
    assert completed_event == {"type": "session_completed", "session": completed}


def test_all_clients_receive_events(client, make_task):
    """Deux onglets connectés reçoivent la même mutation, y compris l'émetteur"""
    with client.websocket_connect("/ws") as first, client.websocket_connect("/ws") as second:
        task = make_task("Partagée")
        assert first.receive_json()["task"]["id"] == task["id"]
        assert second.receive_json()["task"]["id"] == task["id"]


def test_inbound_messages_are_ignored(client, make_task):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("hello")
        ws.send_json({"type": "task_created"})
        task = make_task("Après")
        assert ws.receive_json()["task"]["id"] == task["id"]

    assert client.get("/api/tasks").json()["tasks"] == [task]


def test_disconnect_unsubscribes(client, hub):
    before = hub.subscriber_count
    with client.websocket_connect("/ws"):
        assert hub.subscriber_count == before + 1
        assert hub.topic_size("pomodoro") >= 1

    assert hub.subscriber_count == before
    # publier sans abonné ne doit pas échouer
    assert client.post("/api/tasks", json={"title": "Seule", "day": "monday"}).status_code == 200


def test_repeated_connections_do_not_leak(client, hub):
    before = (hub.subscriber_count, hub.topic_size("tasks"), hub.topic_size("pomodoro"))
    for _ in range(3):
        with client.websocket_connect("/ws") as ws:
            ws.send_text("ping")

    assert (hub.subscriber_count, hub.topic_size("tasks"), hub.topic_size("pomodoro")) == before


def test_hub_close_ends_connection(client, hub):
    """Fermeture côté serveur (arrêt, file pleine): le client reçoit un close"""
    with client.websocket_connect("/ws") as ws:
        hub.close_all()
        with pytest.raises(WebSocketDisconnect):
            ws.receive_json()

    assert hub.subscriber_count == 0
