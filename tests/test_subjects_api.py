import app as school_app
import seed_subjects


def test_available_subjects_seeds_an_empty_catalog(client) -> None:
    resp = client.get("/api/scheduling/available-subjects")
    names = resp.get_json()
    assert resp.status_code == 200
    assert "Mathematics" in names
    assert "Art" in names
    assert len(names) == len(set(names))


def test_available_subjects_are_distinct_and_ordered(client) -> None:
    session = school_app.SessionLocal()
    try:
        for name, band, category in [
            ("Physics", "SHS", "Core"),
            ("Art", "JHS", "Core"),
            ("Art", "SHS", "Applied"),
            ("Biology", "JHS", "Core"),
        ]:
            session.add(school_app.Subject(name=name, level_band=band, category=category))
        session.commit()
    finally:
        session.close()

    # band, category, name; the repeated "Art" keeps its first position
    assert client.get("/api/scheduling/available-subjects").get_json() == ["Art", "Biology", "Physics"]


def test_list_subjects_filters_by_band(client) -> None:
    client.get("/api/admin/seed-subjects")
    rows = client.get("/api/subjects?level_band=SHS").get_json()
    assert rows
    assert {r["level_band"] for r in rows} == {"SHS"}
    assert {"id", "name", "category", "track", "grade_min", "grade_max"} <= set(rows[0])


def test_admin_endpoints_require_token_when_configured(client, monkeypatch) -> None:
    monkeypatch.setenv("ADMIN_INIT_TOKEN", "letmein")
    assert client.get("/api/admin/init").status_code == 403
    assert client.get("/api/admin/seed-subjects").get_json() == {"error": "Forbidden"}

    resp = client.post("/api/admin/init", headers={"X-Admin-Init-Token": "letmein"})
    assert resp.get_json() == {"message": "tables ensured"}
    resp = client.post("/api/admin/seed-subjects?token=letmein")
    assert resp.get_json() == {"message": "Subjects seeded"}


def test_seed_script_replaces_the_catalog(client) -> None:
    session = school_app.SessionLocal()
    try:
        session.add(school_app.Subject(name="Latin", level_band="SHS", category="Core"))
        session.commit()
    finally:
        session.close()

    total = seed_subjects.seed_data()
    names = client.get("/api/scheduling/available-subjects").get_json()
    assert total > 0
    assert "Latin" not in names
    assert "General Mathematics" in names
