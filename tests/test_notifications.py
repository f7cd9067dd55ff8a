import asyncio

import pytest

from app import email_service
from app.auth import get_current_user
from app.main import app
from app.models import Notification
from app.services.notification_service import EmailMessage, deliver_emails


def add_notification(db, title, target_users="todos", **extra):
    notification = Notification(title=title, message=f"{title} body", target_users=target_users, **extra)
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


@pytest.fixture
def feed(db_session, normal_user, admin_user, enroll):
    enroll(normal_user, "SwingTrading")
    return {
        "everyone": add_notification(db_session, "Everyone"),
        "swing": add_notification(db_session, "Swing", "suscriptores", category="SwingTrading"),
        "consulting": add_notification(
            db_session, "Consulting", "suscriptores", category="ConsultorioFinanciero"
        ),
        "subscribers": add_notification(db_session, "All subscribers", "suscriptores"),
        "mine": add_notification(db_session, "Mine", "usuario", recipient_user_id=normal_user.id),
        "theirs": add_notification(db_session, "Theirs", "usuario", recipient_user_id=admin_user.id),
        "admins": add_notification(db_session, "Admins", "admin"),
        "inactive": add_notification(db_session, "Inactive", is_active=False),
    }


class TestVisibility:
    def test_student_sees_public_own_and_enrolled(self, client, signed_in, normal_user, feed):
        signed_in["user"] = normal_user
        titles = {n["title"] for n in client.get("/notifications").json()}
        assert titles == {"Everyone", "Swing", "All subscribers", "Mine"}

    def test_admin_sees_admin_notifications(self, client, feed):
        titles = {n["title"] for n in client.get("/notifications").json()}
        assert "Admins" in titles
        assert "Theirs" in titles
        assert "Swing" not in titles

    def test_newest_first(self, client, signed_in, normal_user, feed):
        signed_in["user"] = normal_user
        ids = [n["id"] for n in client.get("/notifications").json()]
        assert ids == sorted(ids, reverse=True)


class TestMarkRead:
    def test_mark_read_sets_flag_for_that_user_only(self, client, signed_in, normal_user, feed):
        notification_id = feed["everyone"].id
        signed_in["user"] = normal_user

        response = client.post(f"/notifications/{notification_id}/read")
        assert response.status_code == 200
        assert response.json()["isRead"] is True

        # Idempotent
        assert client.post(f"/notifications/{notification_id}/read").json()["isRead"] is True

        listed = {n["id"]: n["isRead"] for n in client.get("/notifications").json()}
        assert listed[notification_id] is True
        assert listed[feed["swing"].id] is False

    def test_cannot_mark_notifications_outside_own_feed(
        self, client, db_session, signed_in, normal_user, feed
    ):
        signed_in["user"] = normal_user
        for hidden in ("admins", "theirs", "consulting", "inactive"):
            notification = feed[hidden]
            assert client.post(f"/notifications/{notification.id}/read").status_code == 404
            db_session.refresh(notification)
            assert normal_user.id not in (notification.read_by or [])

    def test_missing_notification_is_404(self, client):
        assert client.post("/notifications/999/read").status_code == 404


def test_missing_session_cookie_is_401(client):
    app.dependency_overrides.pop(get_current_user)
    assert client.get("/notifications").status_code == 401


def test_deliver_emails_isolates_failures(monkeypatch):
    delivered = []

    async def flaky_send(to, subject, mjml_content, from_address=None):
        if to == "broken@academy.test":
            raise email_service.EmailDeliveryError("mailbox unavailable")
        delivered.append(to)

    monkeypatch.setattr(email_service, "send_email", flaky_send)
    messages = [
        EmailMessage("a@academy.test", "Hi", "<mjml></mjml>"),
        EmailMessage("broken@academy.test", "Hi", "<mjml></mjml>"),
        EmailMessage("c@academy.test", "Hi", "<mjml></mjml>"),
    ]

    result = asyncio.run(deliver_emails(messages))

    assert result["sent"] == 2
    assert result["failed"] == 1
    assert result["errors"][0].startswith("broken@academy.test")
    assert delivered == ["a@academy.test", "c@academy.test"]
