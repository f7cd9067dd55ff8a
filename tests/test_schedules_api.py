from app.models import Notification, RecurringSchedule

MONDAY_SWING = {
    "dayOfWeek": 1,
    "startTime": "09:00",
    "endTime": "10:00",
    "category": "SwingTrading",
    "title": "Swing Morning",
}


def create(client, **overrides):
    return client.post("/schedules", json={**MONDAY_SWING, **overrides})


class TestValidateEndpoint:
    def test_gap_beyond_grace_is_valid(self, client):
        create(client)
        body = client.post(
            "/schedules/validate",
            json={
                "dayOfWeek": 1,
                "startTime": "10:15",
                "endTime": "11:00",
                "category": "DowJones",
                "graceMinutes": 15,
            },
        ).json()
        assert body["isValid"] is True
        assert body["conflicts"] == []
        assert body["graceMinutes"] == 15

    def test_conflict_reports_blocker_and_suggestion(self, client):
        schedule_id = create(client).json()["id"]
        body = client.post(
            "/schedules/validate",
            json={
                "dayOfWeek": 1,
                "startTime": "10:15",
                "endTime": "11:00",
                "category": "DowJones",
                "graceMinutes": 30,
            },
        ).json()
        assert body["isValid"] is False
        assert body["conflicts"][0]["id"] == schedule_id
        assert body["conflicts"][0]["startTime"] == "09:00"
        assert body["suggestions"][0] == "10:30"

    def test_default_grace_applies(self, client):
        create(client)
        body = client.post(
            "/schedules/validate",
            json={"dayOfWeek": 1, "startTime": "10:15", "endTime": "11:00", "category": "DowJones"},
        ).json()
        assert body["graceMinutes"] == 30
        assert body["isValid"] is False

    def test_exclude_id_ignores_the_schedule_being_edited(self, client):
        schedule_id = create(client).json()["id"]
        body = client.post(
            "/schedules/validate",
            json={**MONDAY_SWING, "endTime": "10:30", "excludeId": schedule_id},
        ).json()
        assert body["isValid"] is True

    def test_validation_saves_nothing(self, client, db_session):
        client.post("/schedules/validate", json=MONDAY_SWING)
        assert db_session.query(RecurringSchedule).count() == 0


class TestCreateSchedule:
    def test_create_returns_201(self, client):
        response = create(client)
        assert response.status_code == 201
        body = response.json()
        assert body["dayOfWeek"] == 1
        assert body["startTime"] == "09:00"
        assert body["maxParticipants"] == 10
        assert body["isActive"] is True

    def test_conflicting_create_is_rejected_with_details(self, client, db_session):
        create(client)
        response = create(client, startTime="09:30", endTime="10:30", category="DowJones", title=None)
        assert response.status_code == 409
        body = response.json()
        assert "Conflicts with: Swing Morning (09:00 - 10:00)" in body["detail"]
        assert body["isValid"] is False
        assert body["suggestions"]
        assert db_session.query(RecurringSchedule).count() == 1

    def test_allow_conflicts_overrides(self, client, db_session):
        create(client)
        response = create(client, startTime="09:30", endTime="10:30", allowConflicts=True)
        assert response.status_code == 201
        assert db_session.query(RecurringSchedule).count() == 2

    def test_inactive_schedule_skips_conflict_check(self, client):
        create(client)
        assert create(client, isActive=False).status_code == 201

    def test_other_domain_does_not_conflict(self, client):
        create(client)
        assert create(client, category="ConsultorioFinanciero").status_code == 201

    def test_inverted_times_are_400(self, client):
        assert create(client, startTime="11:00", endTime="10:00").status_code == 400

    def test_malformed_time_is_400(self, client):
        assert create(client, startTime="9am").status_code == 400

    def test_day_out_of_range_is_422(self, client):
        assert create(client, dayOfWeek=7).status_code == 422

    def test_enrolled_users_hear_about_new_schedule(
        self, client, db_session, normal_user, enroll, outbox
    ):
        enroll(normal_user, "SwingTrading")
        create(client)

        notification = db_session.query(Notification).one()
        assert notification.type == "actualizacion"
        assert notification.category == "SwingTrading"
        assert len(outbox) == 1
        assert outbox[0]["to"] == normal_user.email
        assert "Swing Morning" in outbox[0]["subject"]


class TestUpdateAndDelete:
    def test_patch_does_not_conflict_with_itself(self, client):
        schedule_id = create(client).json()["id"]
        response = client.patch(f"/schedules/{schedule_id}", json={"endTime": "10:30"})
        assert response.status_code == 200
        assert response.json()["endTime"] == "10:30"
        assert response.json()["title"] == "Swing Morning"

    def test_patch_into_conflict_is_rejected(self, client):
        create(client)
        other_id = create(client, startTime="14:00", endTime="15:00").json()["id"]
        response = client.patch(f"/schedules/{other_id}", json={"startTime": "10:00", "endTime": "11:00"})
        assert response.status_code == 409

    def test_patch_missing_schedule_is_404(self, client):
        assert client.patch("/schedules/999", json={"title": "Ghost"}).status_code == 404

    def test_delete(self, client):
        schedule_id = create(client).json()["id"]
        assert client.delete(f"/schedules/{schedule_id}").status_code == 200
        assert client.delete(f"/schedules/{schedule_id}").status_code == 404

    def test_list_filters_by_day(self, client):
        create(client)
        create(client, dayOfWeek=3)
        schedules = client.get("/schedules", params={"dayOfWeek": 3}).json()
        assert [s["dayOfWeek"] for s in schedules] == [3]


def test_schedules_require_admin(client, signed_in, normal_user):
    signed_in["user"] = normal_user
    assert client.get("/schedules").status_code == 403
    assert create(client).status_code == 403
    assert client.post("/schedules/validate", json=MONDAY_SWING).status_code == 403
