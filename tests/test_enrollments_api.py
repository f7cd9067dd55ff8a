from app.models import Enrollment, Notification


def enroll_request(email="student@academy.test", category="SwingTrading", **extra):
    return {"userEmail": email, "category": category, **extra}


def test_enroll_existing_user(client, db_session, normal_user, outbox):
    response = client.post(
        "/enrollments", json=enroll_request(trainingName="Swing Trading Pro", price=199.0)
    )
    assert response.status_code == 201
    body = response.json()
    assert body["userId"] == normal_user.id
    assert body["userEmail"] == normal_user.email
    assert body["trainingName"] == "Swing Trading Pro"
    assert body["isActive"] is True

    targets = sorted(n.target_users for n in db_session.query(Notification).all())
    assert targets == ["admin", "usuario"]
    assert [m["to"] for m in outbox] == [normal_user.email]
    assert "Swing Trading Pro" in outbox[0]["subject"]


def test_email_lookup_is_case_insensitive(client, normal_user):
    response = client.post("/enrollments", json=enroll_request(email="Student@Academy.TEST"))
    assert response.status_code == 201


def test_duplicate_enrollment_conflicts(client, db_session, normal_user):
    client.post("/enrollments", json=enroll_request())
    response = client.post("/enrollments", json=enroll_request())
    assert response.status_code == 409
    assert db_session.query(Enrollment).count() == 1


def test_unknown_user_is_404(client):
    assert client.post("/enrollments", json=enroll_request(email="ghost@academy.test")).status_code == 404


def test_invalid_payloads_are_422(client, normal_user):
    assert client.post("/enrollments", json=enroll_request(email="not-an-email")).status_code == 422
    assert client.post("/enrollments", json=enroll_request(category="Astrology")).status_code == 422
    assert client.post("/enrollments", json=enroll_request(price=-5)).status_code == 422


def test_list_filters_by_category(client, normal_user, admin_user):
    client.post("/enrollments", json=enroll_request())
    client.post("/enrollments", json=enroll_request(email=admin_user.email, category="DowJones"))

    assert len(client.get("/enrollments").json()) == 2
    swing = client.get("/enrollments", params={"category": "SwingTrading"}).json()
    assert [e["userEmail"] for e in swing] == [normal_user.email]


def test_admin_copy_is_sent_when_configured(client, normal_user, outbox, monkeypatch):
    monkeypatch.setattr(
        "app.services.notification_service.ADMIN_NOTIFICATION_EMAIL", "ops@academy.test"
    )
    client.post("/enrollments", json=enroll_request())
    assert [m["to"] for m in outbox] == [normal_user.email, "ops@academy.test"]


def test_enrollments_require_admin(client, signed_in, normal_user):
    signed_in["user"] = normal_user
    assert client.get("/enrollments").status_code == 403
    assert client.post("/enrollments", json=enroll_request()).status_code == 403


def test_failed_notification_commit_keeps_enrollment(client, db_session, normal_user, monkeypatch):
    def broken_commit(db, enrollment, user):
        db.add(Notification(title=None, message="missing title"))
        db.commit()

    monkeypatch.setattr("app.domain.enrollments.service.notify_enrollment_created", broken_commit)
    response = client.post("/enrollments", json=enroll_request())

    assert response.status_code == 201
    assert response.json()["userEmail"] == normal_user.email
    assert db_session.query(Enrollment).count() == 1
    assert db_session.query(Notification).count() == 0
