from werkzeug.security import check_password_hash

import app as school_app


def test_create_teacher_derives_primary_subject(make_teacher) -> None:
    row = make_teacher()
    assert row["subject"] == "Math"
    assert row["subjects"] == ["Math", "Art"]
    assert row["subjects_display"] == "Math, Art"
    assert row["username"] == "bob"
    assert "password" not in row
    assert "password_hash" not in row


def test_password_is_stored_hashed(make_teacher) -> None:
    row = make_teacher(password="s3cret-pass")
    session = school_app.SessionLocal()
    try:
        teacher = session.query(school_app.Teacher).filter_by(id=row["id"]).one()
        assert teacher.password_hash != "s3cret-pass"
        assert check_password_hash(teacher.password_hash, "s3cret-pass")
    finally:
        session.close()


def test_create_without_subjects_fails(client) -> None:
    body = {"name": "Eve", "email": "e@x.com", "username": "eve", "password": "p", "subjects": []}
    resp = client.post("/api/teachers", json=body)
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Failed to create teacher"}
    assert client.get("/api/teachers").get_json() == []


def test_legacy_single_subject_body_is_accepted(client) -> None:
    body = {"name": "Lee", "email": "l@x.com", "username": "lee", "password": "p", "subject": "Science"}
    resp = client.post("/api/teachers", json=body)
    assert resp.status_code == 201
    assert resp.get_json()["subjects"] == ["Science"]
    assert resp.get_json()["subject"] == "Science"


def test_duplicate_email_is_a_generic_failure(make_teacher, client) -> None:
    make_teacher()
    body = {"name": "Bobby", "email": "b@x.com", "username": "bobby", "password": "p", "subjects": ["Art"]}
    resp = client.post("/api/teachers", json=body)
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Failed to create teacher"}


def test_update_replaces_subjects_and_keeps_username(make_teacher, client) -> None:
    row = make_teacher()
    resp = client.put(
        f"/api/teachers/{row['id']}",
        json={
            "name": "Robert",
            "email": "b@x.com",
            "username": "someone-else",
            "phone": "556",
            "employee_id": "E1",
            "subjects": ["Art"],
        },
    )
    updated = resp.get_json()
    assert resp.status_code == 200
    assert updated["name"] == "Robert"
    assert updated["username"] == "bob"
    assert updated["subjects"] == ["Art"]
    assert updated["subject"] == "Art"

    listed = client.get("/api/teachers").get_json()
    assert [t["subjects"] for t in listed] == [["Art"]]


def test_update_ignores_password(make_teacher, client) -> None:
    row = make_teacher(password="original")
    client.put(
        f"/api/teachers/{row['id']}",
        json={"name": "Bob", "email": "b@x.com", "password": "changed", "subjects": ["Math"]},
    )
    session = school_app.SessionLocal()
    try:
        teacher = session.query(school_app.Teacher).filter_by(id=row["id"]).one()
        assert check_password_hash(teacher.password_hash, "original")
    finally:
        session.close()


def test_update_with_empty_subjects_leaves_record_untouched(make_teacher, client) -> None:
    row = make_teacher()
    resp = client.put(
        f"/api/teachers/{row['id']}",
        json={"name": "Bob", "email": "b@x.com", "subjects": []},
    )
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Failed to update teacher"}
    listed = client.get("/api/teachers").get_json()
    assert listed[0]["subjects"] == ["Math", "Art"]
    assert listed[0]["subject"] == "Math"


def test_update_missing_teacher_returns_null(client) -> None:
    resp = client.put("/api/teachers/404", json={"name": "X", "email": "x@x.com", "subjects": ["Art"]})
    assert resp.status_code == 200
    assert resp.get_json() is None


def test_every_listed_teacher_keeps_the_subject_invariant(make_teacher, client) -> None:
    make_teacher()
    make_teacher(name="Alice", email="a@x.com", username="alice", subjects=["Science", "Math", "Science", ""])
    for t in client.get("/api/teachers").get_json():
        assert t["subjects"]
        assert t["subject"] == t["subjects"][0]
    alice = [t for t in client.get("/api/teachers").get_json() if t["name"] == "Alice"][0]
    assert alice["subjects"] == ["Science", "Math"]


def test_list_is_ordered_by_name(make_teacher, client) -> None:
    make_teacher(name="Zed", email="z@x.com", username="zed")
    make_teacher(name="Amy", email="a@x.com", username="amy")
    assert [t["name"] for t in client.get("/api/teachers").get_json()] == ["Amy", "Zed"]


def test_delete_teacher_removes_subject_links(make_teacher, client) -> None:
    row = make_teacher()
    resp = client.delete(f"/api/teachers/{row['id']}")
    assert resp.get_json() == {"message": "Teacher deleted"}
    assert client.get("/api/teachers").get_json() == []
    session = school_app.SessionLocal()
    try:
        assert session.query(school_app.TeacherSubject).count() == 0
    finally:
        session.close()


def test_delete_unknown_teacher_still_confirms(client) -> None:
    resp = client.delete("/api/teachers/7")
    assert resp.status_code == 200
    assert resp.get_json() == {"message": "Teacher deleted"}


def test_padded_subject_names_are_stored_once(make_teacher) -> None:
    row = make_teacher(subjects=["Math ", "Math", " Art"])
    assert row["subjects"] == ["Math", "Art"]
    assert row["subject"] == "Math"
