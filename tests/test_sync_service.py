"""Tests du client de synchronisation (TaskBoard + SyncClient)"""

from unittest.mock import MagicMock

import requests

from app.schemas.pomodoro import SessionType
from app.services.pomodoro_service import PomodoroTimer
from app.services.sync_service import SyncClient, TaskBoard


def task_json(task_id, title, day="monday", priority=1, updated_at="2026-01-05T10:00:00", **extra):
    data = {
        "id": task_id,
        "title": title,
        "description": None,
        "day": day,
        "priority": priority,
        "completed": False,
        "created_at": "2026-01-05T10:00:00",
        "updated_at": updated_at,
    }
    data.update(extra)
    return data


# ============ TaskBoard ============

def test_apply_created_is_idempotent():
    board = TaskBoard()
    event = {"type": "task_created", "task": task_json("a", "A")}

    assert board.apply(event) == True
    assert board.apply(event) == False
    assert [t.id for t in board.tasks_for("monday")] == ["a"]


def test_apply_stale_update_is_ignored():
    board = TaskBoard()
    board.load([task_json("a", "Nouveau", updated_at="2026-01-05T12:00:00")])

    stale = {"type": "task_updated", "task": task_json("a", "Ancien", updated_at="2026-01-05T11:00:00")}
    assert board.apply(stale) == False
    assert board.tasks["a"].title == "Nouveau"


def test_apply_update_moves_day():
    board = TaskBoard()
    board.load([task_json("a", "A")])

    moved = task_json("a", "A", day="friday", updated_at="2026-01-05T11:00:00")
    assert board.apply({"type": "task_updated", "task": moved}) == True
    assert board.tasks_for("monday") == []
    assert [t.id for t in board.tasks_for("friday")] == ["a"]


def test_apply_deleted_unknown_is_noop():
    board = TaskBoard()
    board.load([task_json("a", "A")])

    assert board.apply({"type": "task_deleted", "id": "a"}) == True
    assert board.apply({"type": "task_deleted", "id": "a"}) == False
    assert board.tasks == {}


def test_apply_reordered():
    board = TaskBoard()
    board.load([task_json("a", "A"), task_json("b", "B"), task_json("c", "C"), task_json("x", "X", day="sunday")])

    event = {"type": "tasks_reordered", "day": "monday", "taskIds": ["c", "a", "b", "x"]}
    assert board.apply(event) == True
    assert board.apply(event) == False

    assert [t.id for t in board.tasks_for("monday")] == ["c", "a", "b"]
    assert board.tasks["x"].priority == 1


def test_apply_session_events():
    board = TaskBoard()
    session = {
        "id": "s1", "task_id": None, "duration": 1500, "type": "work",
        "started_at": "2026-01-05T10:00:00", "completed_at": None,
    }
    completed = dict(session, completed_at="2026-01-05T10:25:00")

    assert board.apply({"type": "session_started", "session": session}) == True
    assert board.apply({"type": "session_completed", "session": completed}) == True
    # un started en retard ne défait pas la complétion
    assert board.apply({"type": "session_started", "session": session}) == False
    assert board.sessions["s1"].completed_at is not None


def test_by_day_has_every_day():
    board = TaskBoard()
    assert list(board.by_day()) == ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


# ============ SyncClient (requests mocké) ============

def mocked_client(payload):
    http = MagicMock()
    http.request.return_value.json.return_value = payload
    return SyncClient(base_url="http://api.local/", timeout=3, http=http), http


def test_client_create_task_request():
    sync, http = mocked_client({"task": task_json("a", "A")})

    task = sync.create_task("A", "monday")

    assert task.id == "a"
    http.request.assert_called_once_with(
        "POST", "http://api.local/api/tasks", timeout=3, json={"title": "A", "day": "monday"}
    )


def test_client_reorder_request():
    sync, http = mocked_client({"success": True})

    assert sync.reorder("monday", ["b", "a"]) == True
    http.request.assert_called_once_with(
        "POST", "http://api.local/api/tasks/reorder", timeout=3, json={"day": "monday", "taskIds": ["b", "a"]}
    )


def test_client_start_session_request():
    sync, http = mocked_client({"session": {"id": "s1"}})

    assert sync.start_session(SessionType.WORK, 1500, "t1") == "s1"
    http.request.assert_called_once_with(
        "POST", "http://api.local/api/pomodoro/sessions", timeout=3,
        json={"type": "work", "duration": 1500, "task_id": "t1"},
    )


def test_call_or_resync_on_network_failure():
    """Echec réseau -> rechargement complet, pas de retry"""
    sync, http = mocked_client({"tasks": [task_json("a", "A")], "sessions": []})
    board = TaskBoard()
    failing = MagicMock(side_effect=requests.ConnectionError("offline"))

    result = sync.call_or_resync(board, failing, "x")

    assert result is None
    failing.assert_called_once_with("x")
    assert [t.id for t in board.tasks_for("monday")] == ["a"]


def test_call_or_resync_when_resync_fails_too():
    http = MagicMock()
    http.request.side_effect = requests.ConnectionError("offline")
    sync = SyncClient(base_url="http://api.local", http=http)
    board = TaskBoard()
    board.load([task_json("a", "A")])

    assert sync.call_or_resync(board, sync.delete_task, "a") is None
    assert list(board.tasks) == ["a"]


# ============ Bout en bout contre l'app ============

def test_board_stays_consistent_with_echo(client):
    """Le client reçoit sa propre mutation en écho: no-op après resync"""
    sync = SyncClient(base_url="http://testserver", http=client)
    board = TaskBoard()

    with client.websocket_connect("/ws") as ws:
        a = sync.create_task("A", "monday")
        b = sync.create_task("B", "monday")
        sync.resync(board)

        assert board.apply(ws.receive_json()) == False
        assert board.apply(ws.receive_json()) == False

        sync.reorder("monday", [b.id, a.id])
        assert board.apply(ws.receive_json()) == True

    assert [t.id for t in board.tasks_for("monday")] == [b.id, a.id]
    assert [t.id for t in sync.list_tasks("monday")] == [b.id, a.id]


def test_timer_persists_through_client(client):
    sync = SyncClient(base_url="http://testserver", http=client)
    task = sync.create_task("Focus", "tuesday")
    timer = PomodoroTimer(sync, {SessionType.WORK: 2, SessionType.SHORT_BREAK: 1, SessionType.LONG_BREAK: 3}, task_id=task.id)

    timer.start()
    timer.tick(2)

    sessions = sync.list_sessions(task.id)
    assert len(sessions) == 1
    assert sessions[0].type == "work"
    assert sessions[0].duration == 2
    assert sessions[0].completed_at is not None
    assert timer.current_type == SessionType.SHORT_BREAK
