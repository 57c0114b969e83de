# whs_core/incidents/tests/test_intake_api.py
import json
import uuid
from datetime import date, time

import pytest
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile

from whs_core.cases.models import Case
from whs_core.incidents.api.views import _upload
from whs_core.incidents.models import Incident
from whs_core.notifications.models import Notification
from whs_core.schedules.models import WorkSchedule

pytestmark = pytest.mark.django_db

URL = "/api/v1/incidents/"


def _payload(subject_id, **overrides):
    data = {
        "subject_id": str(subject_id),
        "kind": "injury",
        "incident_date": "2024-06-01",
        "description": "Twisted ankle on loading ramp",
        "location": "Ramp B",
    }
    data.update(overrides)
    return data


def _schedule(subject_id, team):
    return WorkSchedule.objects.create(
        worker_id=subject_id,
        team_id=team.id,
        day_of_week=0,
        start_time=time(7, 0),
        end_time=time(15, 0),
    )


def test_report_opens_case_and_incident(api_client, subject_id, team, supervisor_id, lead_id, user):
    _schedule(subject_id, team)
    _schedule(subject_id, team)

    res = api_client.post(URL, _payload(subject_id), format="json")
    assert res.status_code == 201, res.data

    assert res.data["status"] == "new"
    assert res.data["schedules_deactivated"] == 2
    assert res.data["notifications_sent"] == 3
    assert res.data["case_number"].startswith("CASE-")

    case = Case.objects.get(id=res.data["case_id"])
    incident = Incident.objects.get(id=res.data["incident_id"])
    assert case.incident_id == incident.id
    assert case.team_id == team.id
    assert case.opened_on == date(2024, 6, 1)
    assert case.created_by_id == str(user.pk)
    assert incident.severity == "high"
    assert incident.reported_by_id == str(user.pk)

    assert not WorkSchedule.objects.filter(worker_id=subject_id, is_active=True).exists()
    assert set(Notification.objects.values_list("recipient_id", flat=True)) == {
        str(supervisor_id),
        str(lead_id),
        str(user.pk),
    }


def test_duplicate_open_case_is_conflict(api_client, subject_id):
    first = api_client.post(URL, _payload(subject_id), format="json")
    assert first.status_code == 201, first.data

    res = api_client.post(URL, _payload(subject_id, description="Second report"), format="json")
    assert res.status_code == 409, res.data
    assert res.data["error"]["code"] == "duplicate_open_case"
    assert str(res.data["error"]["details"]["case_id"]) == str(first.data["case_id"])
    assert Case.objects.count() == 1
    assert Incident.objects.count() == 1


def test_worker_without_team_is_unprocessable(api_client, db):
    res = api_client.post(URL, _payload(uuid.uuid4()), format="json")
    assert res.status_code == 422, res.data
    assert res.data["error"]["code"] == "routing_context_missing"
    assert Case.objects.count() == 0
    assert Incident.objects.count() == 0


def test_validation_errors(api_client, subject_id):
    res = api_client.post(URL, _payload(subject_id, kind="meteor"), format="json")
    assert res.status_code == 400, res.data
    assert res.data["error"]["code"] == "validation_error"
    assert "kind" in res.data["error"]["details"]

    res = api_client.post(URL, {"kind": "injury"}, format="json")
    assert res.status_code == 400
    assert "subject_id" in res.data["error"]["details"]


def test_multipart_with_photo_and_ai_analysis(api_client, subject_id):
    photo = SimpleUploadedFile("hand.png", b"\x89PNG\r\n\x1a\n" + b"0" * 128, content_type="image/png")
    data = _payload(subject_id, photo=photo, ai_analysis=json.dumps({"summary": "laceration"}))

    res = api_client.post(URL, data, format="multipart")
    assert res.status_code == 201, res.data

    incident = Incident.objects.get(id=res.data["incident_id"])
    assert incident.photo_ref == res.data["photo_ref"]
    assert incident.photo_ref.startswith(f"incidents/{subject_id}/")
    assert default_storage.exists(incident.photo_ref)
    assert incident.ai_analysis == {"summary": "laceration"}


def test_bad_photo_type_is_skipped_not_fatal(api_client, subject_id):
    doc = SimpleUploadedFile("report.txt", b"hello", content_type="text/plain")

    res = api_client.post(URL, _payload(subject_id, photo=doc), format="multipart")
    assert res.status_code == 201, res.data
    assert res.data["photo_ref"] is None
    step = next(s for s in res.data["steps"] if s["name"] == "attach_media")
    assert step["skipped"] is True


def test_oversized_photo_is_skipped_not_fatal(api_client, subject_id, settings):
    settings.WHS_MEDIA_MAX_BYTES = 64
    photo = SimpleUploadedFile("hand.png", b"\x89PNG\r\n\x1a\n" + b"0" * 1024, content_type="image/png")

    res = api_client.post(URL, _payload(subject_id, photo=photo), format="multipart")
    assert res.status_code == 201, res.data
    assert res.data["photo_ref"] is None
    step = next(s for s in res.data["steps"] if s["name"] == "attach_media")
    assert step["skipped"] is True
    assert "limit is 64 bytes" in step["detail"]


def test_oversized_upload_body_is_never_read(settings):
    settings.WHS_MEDIA_MAX_BYTES = 64

    class Unreadable:
        name = "big.jpg"
        content_type = "image/jpeg"
        size = 10 * 1024 * 1024 * 1024

        def read(self):
            raise AssertionError("body read")

    upload = _upload(Unreadable())
    assert upload.content == b""
    assert upload.size == Unreadable.size


def test_eligibility(api_client, subject_id):
    res = api_client.get(f"{URL}eligibility/", {"subject_id": str(subject_id)})
    assert res.status_code == 200, res.data
    assert res.data == {"can_report": True, "open_case_id": None, "open_case_status": None}

    created = api_client.post(URL, _payload(subject_id), format="json")

    res = api_client.get(f"{URL}eligibility/", {"subject_id": str(subject_id)})
    assert res.data["can_report"] is False
    assert str(res.data["open_case_id"]) == str(created.data["case_id"])
    assert res.data["open_case_status"] == "new"


def test_eligibility_requires_subject(api_client, db):
    assert api_client.get(f"{URL}eligibility/").status_code == 400
    assert api_client.get(f"{URL}eligibility/", {"subject_id": "nope"}).status_code == 400


def test_closed_case_allows_new_report(api_client, subject_id):
    first = api_client.post(URL, _payload(subject_id), format="json")
    close = api_client.post(f"/api/v1/cases/{first.data['case_id']}/close/", {}, format="json")
    assert close.status_code == 200, close.data

    res = api_client.post(URL, _payload(subject_id, incident_date="2024-07-01"), format="json")
    assert res.status_code == 201, res.data
    assert Case.objects.filter(subject_id=subject_id).count() == 2
