# /tests/test_routers.py

import pytest
from fastapi import status
from starlette.websockets import WebSocketDisconnect


def _create_class(client, name="Grade 8"):
    response = client.post("/api/classes", json={"name": name})
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


def _create_student(client, class_id, name="Ali", room="101"):
    response = client.post(f"/api/classes/{class_id}/students", json={"name": name, "room": room})
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


def _record(client, student_id, prayer="Subh", violation_type="Absent", day="2024-01-10"):
    return client.post("/api/violations", json={
        "student_id": student_id, "date": day, "prayer": prayer, "type": violation_type,
    })


def test_health_check(client):
    response = client.get("/")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["version"] == "1.0.0"


# --- Classes & Students ---

def test_class_and_student_lifecycle(client):
    cls = _create_class(client)
    ali = _create_student(client, cls["id"])

    assert ali["class_name"] == "Grade 8"
    assert ali["total_fine"] == 0

    classes = client.get("/api/classes").json()
    assert classes == [{"id": cls["id"], "name": "Grade 8", "studentCount": 1}]

    details = client.get(f"/api/classes/{cls['id']}").json()
    assert [s["name"] for s in details["students"]] == ["Ali"]

    renamed = client.put(f"/api/classes/{cls['id']}", json={"name": "Grade 8A"})
    assert renamed.status_code == status.HTTP_200_OK
    assert client.get(f"/api/students/{ali['id']}").json()["class_name"] == "Grade 8A"

    assert client.delete(f"/api/classes/{cls['id']}").status_code == status.HTTP_204_NO_CONTENT
    assert client.get(f"/api/students/{ali['id']}").status_code == status.HTTP_404_NOT_FOUND


def test_duplicate_class_name(client):
    _create_class(client)
    response = client.post("/api/classes", json={"name": " Grade 8 "})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_unknown_class_returns_404(client):
    assert client.get("/api/classes/cls_missing").status_code == status.HTTP_404_NOT_FOUND
    assert client.delete("/api/classes/cls_missing").status_code == status.HTTP_404_NOT_FOUND
    response = client.post("/api/classes/cls_missing/students", json={"name": "Ali"})
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_patch_student(client):
    cls = _create_class(client)
    ali = _create_student(client, cls["id"])

    response = client.patch(f"/api/students/{ali['id']}", json={"room": "204"})

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["room"] == "204"
    assert response.json()["name"] == "Ali"


def test_search_students(client):
    cls = _create_class(client)
    _create_student(client, cls["id"], "Ali")
    _create_student(client, cls["id"], "Bilal", "102")

    names = [s["name"] for s in client.get("/api/students", params={"search": "bil"}).json()]
    assert names == ["Bilal"]


def test_import_students_from_csv(client):
    cls = _create_class(client)
    files = {"file": ("roster.csv", b"Name,Room\nAli,101\nBilal,102\n", "text/csv")}

    response = client.post(f"/api/classes/{cls['id']}/students/import", files=files)

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["imported"] == 2
    assert client.get("/api/classes").json()[0]["studentCount"] == 2


def test_import_without_name_column(client):
    cls = _create_class(client)
    files = {"file": ("roster.csv", b"Student\nAli\n", "text/csv")}

    response = client.post(f"/api/classes/{cls['id']}/students/import", files=files)

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


# --- Violations ---

def test_record_and_delete_violation(client):
    cls = _create_class(client)
    ali = _create_student(client, cls["id"])

    response = _record(client, ali["id"])
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["fine"] == 50

    duplicate = _record(client, ali["id"])
    assert duplicate.status_code == status.HTTP_409_CONFLICT

    history = client.get(f"/api/students/{ali['id']}/violations").json()
    assert history["student"]["total_fine"] == 50
    (violation,) = history["violations"]

    deleted = client.delete(f"/api/violations/{violation['id']}")
    assert deleted.json()["fine"] == 50
    assert client.get(f"/api/students/{ali['id']}").json()["total_fine"] == 0


def test_record_violation_validation(client):
    cls = _create_class(client)
    ali = _create_student(client, cls["id"])

    assert _record(client, ali["id"], violation_type="Sleeping").status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert _record(client, ali["id"], prayer=None).status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert _record(client, "stu_missing").status_code == status.HTTP_404_NOT_FOUND


def test_batch_and_clear_all(client):
    cls = _create_class(client)
    ali = _create_student(client, cls["id"])
    bilal = _create_student(client, cls["id"], "Bilal", "102")
    _record(client, bilal["id"], prayer="N/A", violation_type="Late to School", day="2024-02-01")

    response = client.post("/api/violations/batch", json={
        "student_ids": [ali["id"], bilal["id"]],
        "date": "2024-02-01",
        "type": "Late to School",
    })

    body = response.json()
    assert (body["recorded"], body["duplicates"]) == (1, 1)
    assert body["message"] == "Fine added for 1 student (1 skipped)"

    listed = client.get("/api/violations", params={"date": "2024-02-01"}).json()
    assert {v["prayer"] for v in listed} == {"N/A"}

    cleared = client.delete("/api/violations").json()
    assert cleared["deleted"] == 2
    assert all(s["total_fine"] == 0 for s in client.get("/api/students").json())


def test_clear_student_violations(client):
    cls = _create_class(client)
    ali = _create_student(client, cls["id"])
    _record(client, ali["id"], violation_type="No Cap")

    response = client.delete(f"/api/students/{ali['id']}/violations")

    assert response.json()["deleted"] == 1
    assert client.get(f"/api/students/{ali['id']}").json()["total_fine"] == 0


def test_reconcile_endpoint(client):
    response = client.post("/api/violations/reconcile")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["corrections"] == []


# --- Dashboard & Reports ---

def test_dashboard_summary(client):
    cls = _create_class(client)
    ali = _create_student(client, cls["id"])
    _record(client, ali["id"])

    summary = client.get("/api/dashboard/summary").json()

    assert summary["totalFines"] == 50
    assert summary["totalViolations"] == 1
    assert summary["topFines"][0]["name"] == "Ali"


def test_pdf_exports(client):
    cls = _create_class(client)
    ali = _create_student(client, cls["id"])
    _record(client, ali["id"])

    roster = client.get("/api/reports/fines.pdf")
    assert roster.status_code == status.HTTP_200_OK
    assert roster.headers["content-type"] == "application/pdf"
    assert roster.content.startswith(b"%PDF")

    report = client.get(f"/api/students/{ali['id']}/report.pdf")
    assert report.content.startswith(b"%PDF")
    assert client.get("/api/students/stu_missing/report.pdf").status_code == status.HTTP_404_NOT_FOUND


def test_student_report_with_non_latin_name(client):
    cls = _create_class(client)
    student = _create_student(client, cls["id"], name="محمد Ali")
    _record(client, student["id"])

    response = client.get(f"/api/students/{student['id']}/report.pdf")

    assert response.status_code == status.HTTP_200_OK
    assert response.content.startswith(b"%PDF")
    disposition = response.headers["content-disposition"]
    assert 'filename="violations__ali.pdf"' in disposition
    assert "filename*=UTF-8''violations_%D9%85%D8%AD%D9%85%D8%AF_ali.pdf" in disposition


def test_patch_student_with_nothing_to_change(client):
    cls = _create_class(client)
    ali = _create_student(client, cls["id"])

    response = client.patch(f"/api/students/{ali['id']}", json={})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


# --- Live Updates ---

def test_live_stream_pushes_snapshots_and_cleans_up(client, hub):
    """
    GIVEN: A client listening to the students stream.
    WHEN:  A student is added and the client then closes the socket.
    THEN:  It receives the initial and the updated snapshot, and its subscription is removed.
    """
    cls = _create_class(client)

    with client.websocket_connect("/api/live/students") as websocket:
        assert websocket.receive_json() == []
        assert hub.subscriber_count("students") == 1

        _create_student(client, cls["id"])

        assert [s["name"] for s in websocket.receive_json()] == ["Ali"]

    assert hub.subscriber_count("students") == 0


def test_live_stream_quiet_disconnect_unsubscribes(client, hub):
    with client.websocket_connect("/api/live/violations") as websocket:
        assert websocket.receive_json() == []

    assert hub.subscriber_count("violations") == 0


def test_live_stream_rejects_unknown_kind(client, hub):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/api/live/teachers"):
            pass

    assert exc_info.value.code == status.WS_1008_POLICY_VIOLATION
    assert hub.subscriber_count("students") == 0
