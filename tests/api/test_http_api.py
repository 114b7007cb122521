from datetime import datetime, timedelta
from io import BytesIO

import pytest

from src.ojt_tracker.ojt_tracker.container import wire_container
from src.ojt_tracker.ojt_tracker.core.enums import Role
from src.ojt_tracker.ojt_tracker.main import create_app
from tests.fakes import (
    InMemoryAttendance,
    InMemoryKanban,
    InMemorySettings,
    InMemoryStorage,
    InMemoryUsers,
    make_profile,
    make_site,
)

ADMIN, SUPERVISOR, TRAINEE, OTHER = 1, 2, 3, 4


@pytest.fixture
def kanban():
    repo = InMemoryKanban()
    todo = repo.add_column("To Do")
    repo.add_column("Done")
    repo.add_task(todo, "Trainee task", creator_id=TRAINEE)
    repo.add_task(todo, "Other task", creator_id=OTHER)
    return repo


@pytest.fixture
def app(kanban):
    users = InMemoryUsers(
        [
            make_profile(ADMIN, Role.ADMIN),
            make_profile(SUPERVISOR, Role.SUPERVISOR),
            make_profile(TRAINEE, Role.OJT),
            make_profile(OTHER, Role.OJT),
        ]
    )
    container = wire_container(
        users_repo=users,
        settings_repo=InMemorySettings(make_site()),
        attendance_repo=InMemoryAttendance(),
        kanban_repo=kanban,
        assignees_repo=kanban.assignees,
        attachments_repo=kanban.attachments,
        storage=InMemoryStorage(),
        max_upload_bytes=1024,
    )
    app = create_app(container=container)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, user_id):
    res = client.post("/api/auth/login", json={"email": f"user{user_id}@ojt.local", "password": "secret123"})
    assert res.status_code == 200, res.get_json()
    return res.get_json()


def test_login_sets_session_and_redirect(client):
    body = login(client, TRAINEE)
    assert body["success"] is True
    assert body["redirect"] == "/dashboard/ojt"

    me = client.get("/api/me").get_json()
    assert me["user"]["user_id"] == TRAINEE
    assert "password_hash" not in me["user"]
    assert me["user"]["role_label"] == "OJT"


def test_bad_login_is_401(client):
    res = client.post("/api/auth/login", json={"email": "user3@ojt.local", "password": "nope"})
    assert res.status_code == 401
    assert res.get_json() == {"success": False, "message": "Invalid email or password."}


def test_anonymous_access(client):
    assert client.get("/api/kanban/board").status_code == 401
    res = client.get("/dashboard/ojt")
    assert res.status_code == 302
    assert res.headers["Location"].endswith("/login")


def test_role_gate(client):
    login(client, TRAINEE)
    assert client.get("/api/admin/users").status_code == 403
    assert client.get("/api/supervisor/reports").status_code == 403


def test_logout_clears_session(client):
    login(client, TRAINEE)
    client.get("/logout")
    assert client.get("/api/me").status_code == 401


def test_clock_in_out_flow(client):
    login(client, TRAINEE)

    far = client.post("/api/attendance/clock", json={"latitude": 14.61, "longitude": 120.9842})
    assert far.status_code == 400
    assert far.get_json()["radius_meters"] == 100
    assert far.get_json()["distance_meters"] > 1000

    missing = client.post("/api/attendance/clock", json={})
    assert missing.status_code == 400

    overflow = client.post(
        "/api/attendance/clock",
        data='{"latitude": 1e999, "longitude": 120.9842}',
        content_type="application/json",
    )
    assert overflow.status_code == 400
    assert overflow.get_json()["success"] is False

    near = {"latitude": 14.6, "longitude": 120.9842}
    first = client.post("/api/attendance/clock", json=near).get_json()
    assert (first["action"], first["message"]) == ("clock_in", "Clocked in successfully!")

    second = client.post("/api/attendance/clock", json=near).get_json()
    assert second["action"] == "clock_out"

    done = client.post("/api/attendance/clock", json=near)
    assert done.status_code == 409
    assert done.get_json()["message"] == "You have already completed your attendance for today."

    assert client.get("/api/attendance/today").get_json()["clock_status"] == "clocked_out"
    assert len(client.get("/api/attendance/history?limit=5").get_json()["history"]) == 1


def test_ojt_dashboard(client):
    login(client, TRAINEE)
    body = client.get("/dashboard/ojt").get_json()
    assert body["clock_status"] == "absent"
    assert body["summary"]["total_days"] == 0
    assert body["invitations"] == []


def test_board_marks_editable_tasks(client):
    login(client, TRAINEE)
    board = client.get("/api/kanban/board").get_json()["board"]

    assert [c["title"] for c in board] == ["To Do", "Done"]
    editable = {t["title"]: t["can_edit"] for t in board[0]["tasks"]}
    assert editable == {"Trainee task": True, "Other task": False}


def test_drop_and_forbidden_move(client, kanban):
    login(client, TRAINEE)

    res = client.post("/api/kanban/drop", json={"active_id": "task-1", "over_id": "column-2"})
    assert res.status_code == 200
    assert kanban.column_task_ids(2) == [1]
    assert kanban.column_positions(1) == [0]

    res = client.post("/api/kanban/tasks/move", json={"task_id": 2, "to_column_id": 2, "to_index": 0})
    assert res.status_code == 403


def test_failed_board_write_returns_authoritative_board(client, kanban):
    login(client, SUPERVISOR)
    kanban.fail_writes = True

    res = client.post("/api/kanban/drop", json={"active_id": "task-2", "over_id": "task-1"})

    assert res.status_code == 409
    board = res.get_json()["board"]
    assert [t["task_id"] for t in board[0]["tasks"]] == [1, 2]


def test_column_management_is_for_managers(client):
    login(client, TRAINEE)
    assert client.post("/api/kanban/columns", json={"title": "Review"}).status_code == 403

    client.get("/logout")
    login(client, SUPERVISOR)
    res = client.post("/api/kanban/columns", json={"title": "Review", "color": "#112233"})
    assert res.status_code == 201
    assert res.get_json()["column_id"] == 3


def test_invitation_round_trip(client):
    login(client, SUPERVISOR)
    assert client.post("/api/kanban/tasks/1/assignees", json={"user_id": OTHER}).status_code == 201
    assert client.post("/api/kanban/tasks/1/assignees", json={"user_id": OTHER}).status_code == 409
    client.get("/logout")

    login(client, OTHER)
    invites = client.get("/api/kanban/invitations").get_json()["tasks"]
    assert [t["task_id"] for t in invites] == [1]

    res = client.post("/api/kanban/tasks/1/respond", json={"response": "accept"})
    assert res.get_json()["status_value"] == "accepted"

    task = client.get("/api/kanban/tasks/1").get_json()["task"]
    assert task["can_edit"] is True
    assert client.post("/api/kanban/tasks/1/respond", json={"accept": False}).status_code == 409


def test_create_and_archive_task(client, kanban):
    login(client, TRAINEE)
    res = client.post(
        "/api/kanban/tasks",
        json={"column_id": 2, "title": "New", "priority": "low", "assignee_ids": f"{OTHER}"},
    )
    assert res.status_code == 201
    task_id = res.get_json()["task_id"]
    assert kanban.get_task(task_id).status_of(OTHER).value == "pending"

    assert client.post(f"/api/kanban/tasks/{task_id}/archive").status_code == 200
    assert kanban.get_task(task_id).is_archived


def test_admin_archive_listing_and_restore(client, kanban):
    kanban.tasks[1].archived_at = datetime.now() - timedelta(days=1)
    login(client, ADMIN)

    body = client.get("/api/admin/archive").get_json()
    assert body["retention_days"] == 7
    assert [t["task_id"] for t in body["tasks"]] == [1]
    assert body["tasks"][0]["days_remaining"] == 6

    assert client.post("/api/admin/archive/1/restore").status_code == 200
    assert not kanban.get_task(1).is_archived


def test_attachment_upload_and_url(client, kanban):
    login(client, TRAINEE)
    res = client.post(
        "/api/kanban/tasks/1/attachments",
        data={"file": (BytesIO(b"%PDF-1.4"), "brief.pdf", "application/pdf")},
        content_type="multipart/form-data",
    )
    assert res.status_code == 201
    attachment = res.get_json()["attachment"]
    assert attachment["file_type"] == "document"

    url = client.get(f"/api/kanban/attachments/{attachment['attachment_id']}/url").get_json()["url"]
    assert attachment["storage_path"] in url

    bad = client.post(
        "/api/kanban/tasks/1/attachments",
        data={"file": (BytesIO(b"PK"), "a.zip", "application/zip")},
        content_type="multipart/form-data",
    )
    assert bad.status_code == 400


def test_settings_endpoints(client):
    login(client, ADMIN)
    res = client.post("/api/admin/settings/retention", json={"days": 3})
    assert res.get_json()["days"] == 3
    assert client.post("/api/admin/settings/retention", json={"days": 0}).status_code == 400

    site = client.get("/api/settings/site").get_json()["settings"]
    assert site["archive_retention_days"] == 3


def test_reports_csv(client):
    login(client, SUPERVISOR)
    res = client.get("/api/supervisor/reports.csv?month=2026-03")
    assert res.status_code == 200
    assert res.mimetype == "text/csv"
    assert "report-2026-03.csv" in res.headers["Content-Disposition"]
    text = res.data.decode("utf-8-sig")
    assert text.splitlines()[0].startswith("Name,Email,Dept")

    assert client.get("/api/supervisor/reports?month=March").status_code == 400


def test_admin_user_management(client):
    login(client, ADMIN)
    res = client.post(
        "/api/admin/users",
        json={"full_name": "Nina", "email": "nina@ojt.local", "password": "password1", "role": "supervisor"},
    )
    assert res.status_code == 201
    new_id = res.get_json()["user_id"]

    assert client.post(f"/api/admin/users/{new_id}/deactivate").status_code == 200
    users = {u["user_id"]: u for u in client.get("/api/admin/users").get_json()["users"]}
    assert users[new_id]["is_active"] is False

    assert client.delete(f"/api/admin/users/{ADMIN}").status_code == 400
    assert client.delete("/api/admin/users/999").status_code == 404


def test_attendance_log_scoping_and_csv(client):
    login(client, TRAINEE)
    client.post("/api/attendance/clock", json={"latitude": 14.6, "longitude": 120.9842})

    mine = client.get("/api/attendance").get_json()
    assert [r["user_id"] for r in mine["records"]] == [TRAINEE]
    assert mine["records"][0]["status_label"] == "In Progress"
    client.get("/logout")

    login(client, SUPERVISOR)
    assert client.get(f"/api/attendance?month={mine['month']}&q=nobody").get_json()["records"] == []
    everyone = client.get(f"/api/attendance?month={mine['month']}").get_json()["records"]
    assert [r["full_name"] for r in everyone] == [f"User {TRAINEE}"]

    res = client.get(f"/api/attendance.csv?month={mine['month']}")
    assert res.mimetype == "text/csv"
    assert f"attendance-{mine['month']}.csv" in res.headers["Content-Disposition"]
    assert res.data.decode("utf-8-sig").splitlines()[0] == "Date,Name,Clock In,Clock Out,Total Hours,Status"
