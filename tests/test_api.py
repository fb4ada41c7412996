"""HTTP API tests: permissions and failure-to-status mapping."""

from uuid import uuid4

import httpx
import pytest

from app.api.v1.responses import failure_response
from app.models.appointment import AppointmentStatus
from app.services.audit import AuditEventType
from app.services.errors import ErrorKind
from app.services.results import Failure
from conftest import at, bearer

APPOINTMENTS = "/api/v1/appointments"
REACCESS = "/api/v1/reaccess-requests"


class TestAuthentication:
    """Tests for token handling."""

    async def test_missing_token(self, client: httpx.AsyncClient) -> None:
        """Unauthenticated calls are rejected."""
        response = await client.get(APPOINTMENTS)

        assert response.status_code == 401

    async def test_unknown_role(self, client: httpx.AsyncClient) -> None:
        """Tokens with an unknown role are forbidden."""
        response = await client.get(APPOINTMENTS, headers=bearer(str(uuid4()), "janitor"))

        assert response.status_code == 403

    async def test_garbage_token(self, client: httpx.AsyncClient) -> None:
        """Undecodable tokens count as missing."""
        response = await client.get(
            APPOINTMENTS, headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401


class TestAppointmentEndpoints:
    """Tests for booking and attendance over HTTP."""

    async def test_doctor_books_for_self(
        self, client, doctor, patient, doctor_headers, audit_sink
    ) -> None:
        """Doctors book against their own schedule."""
        response = await client.post(
            APPOINTMENTS,
            json={"patient_id": patient.id, "scheduled_at": at(10).isoformat()},
            headers=doctor_headers,
        )

        assert response.status_code == 201
        assert response.json()["id"]
        assert len(audit_sink.of_type(AuditEventType.APPOINTMENT_CREATED)) == 1

    async def test_conflict_maps_to_409(
        self, client, doctor, patient, other_patient, doctor_headers
    ) -> None:
        """Conflicts carry kind, message and details."""
        await client.post(
            APPOINTMENTS,
            json={"patient_id": patient.id, "scheduled_at": at(10).isoformat()},
            headers=doctor_headers,
        )

        response = await client.post(
            APPOINTMENTS,
            json={"patient_id": other_patient.id, "scheduled_at": at(10, 10).isoformat()},
            headers=doctor_headers,
        )

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "scheduling_conflict"
        assert "John Doe" in body["message"]
        assert body["details"]["patient_name"] == "John Doe"

    async def test_restricted_maps_to_403(
        self, client, doctor, restricted_patient, doctor_headers
    ) -> None:
        """Restricted patients cannot be booked."""
        response = await client.post(
            APPOINTMENTS,
            json={"patient_id": restricted_patient.id, "scheduled_at": at(10).isoformat()},
            headers=doctor_headers,
        )

        assert response.status_code == 403
        assert response.json()["error"] == "patient_restricted"

    async def test_naive_time_maps_to_422(
        self, client, doctor, patient, doctor_headers
    ) -> None:
        """Times without a zone are rejected."""
        response = await client.post(
            APPOINTMENTS,
            json={"patient_id": patient.id, "scheduled_at": "2026-02-04T10:00:00"},
            headers=doctor_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    async def test_admin_must_name_doctor(
        self, client, patient, admin_headers
    ) -> None:
        """Admins book on behalf of a named doctor."""
        response = await client.post(
            APPOINTMENTS,
            json={"patient_id": patient.id, "scheduled_at": at(10).isoformat()},
            headers=admin_headers,
        )

        assert response.status_code == 422

    async def test_nurse_cannot_book(self, client, patient, nurse_headers) -> None:
        """Nurses lack the booking permission."""
        response = await client.post(
            APPOINTMENTS,
            json={"patient_id": patient.id, "scheduled_at": at(10).isoformat()},
            headers=nurse_headers,
        )

        assert response.status_code == 403

    async def test_only_admin_deletes(
        self, client, doctor, patient, doctor_headers, admin_headers
    ) -> None:
        """Deletion is an elevated permission."""
        created = await client.post(
            APPOINTMENTS,
            json={"patient_id": patient.id, "scheduled_at": at(10).isoformat()},
            headers=doctor_headers,
        )
        appointment_id = created.json()["id"]

        forbidden = await client.delete(f"{APPOINTMENTS}/{appointment_id}", headers=doctor_headers)
        assert forbidden.status_code == 403

        deleted = await client.delete(f"{APPOINTMENTS}/{appointment_id}", headers=admin_headers)
        assert deleted.status_code == 204

        again = await client.delete(f"{APPOINTMENTS}/{appointment_id}", headers=admin_headers)
        assert again.status_code == 404
        assert again.json()["error"] == "not_found"

    async def test_three_misses_over_http(
        self, client, doctor, patient, nurse_headers, make_appointment
    ) -> None:
        """Nurses record attendance; the third miss restricts the patient."""
        outcomes = []
        for hour in (8, 9, 10):
            appointment = await make_appointment(doctor, patient, at(hour))
            response = await client.post(
                f"{APPOINTMENTS}/{appointment.id}/status",
                json={"status": "missed"},
                headers=nurse_headers,
            )
            assert response.status_code == 200
            outcomes.append(response.json())

        assert [o["missed_count"] for o in outcomes] == [1, 2, 3]
        assert [o["patient_restricted"] for o in outcomes] == [False, False, True]
        assert outcomes[-1]["appointment"]["status"] == AppointmentStatus.MISSED.value

        state = await client.get(
            f"/api/v1/patients/{patient.id}/account-state", headers=nurse_headers
        )
        assert state.json() == {"status": "restricted", "missed_count": 3, "is_restricted": True}

    async def test_reschedule_and_cancel(
        self, client, doctor, patient, doctor_headers, nurse_headers
    ) -> None:
        """Reschedule then cancel an appointment."""
        created = await client.post(
            APPOINTMENTS,
            json={"patient_id": patient.id, "scheduled_at": at(10).isoformat()},
            headers=doctor_headers,
        )
        appointment_id = created.json()["id"]

        moved = await client.put(
            f"{APPOINTMENTS}/{appointment_id}",
            json={"scheduled_at": at(10, 5).isoformat(), "reason": "Moved"},
            headers=doctor_headers,
        )
        assert moved.status_code == 200
        assert moved.json()["reason"] == "Moved"

        cancelled = await client.post(
            f"{APPOINTMENTS}/{appointment_id}/cancel", headers=nurse_headers
        )
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "cancelled"

    async def test_patient_sees_own_appointments(
        self, client, doctor, patient, other_patient, patient_headers, make_appointment
    ) -> None:
        """The patient listing is scoped to the caller."""
        await make_appointment(doctor, patient, at(9))
        await make_appointment(doctor, other_patient, at(11))

        response = await client.get(f"{APPOINTMENTS}/mine", headers=patient_headers)

        assert response.status_code == 200
        items = response.json()
        assert len(items) == 1
        assert items[0]["doctor_name"] == "Dr. Alice Smith"

    async def test_patient_cannot_list_schedule(self, client, patient_headers) -> None:
        """Patients do not see staff schedules."""
        response = await client.get(APPOINTMENTS, headers=patient_headers)

        assert response.status_code == 403


class TestReaccessEndpoints:
    """Tests for the re-access workflow over HTTP."""

    async def test_submit_then_duplicate(
        self, client, restricted_patient, restricted_patient_headers
    ) -> None:
        """A second pending request is a 409."""
        first = await client.post(
            REACCESS,
            json={"reason": "I was ill", "contact_phone": "0100000000"},
            headers=restricted_patient_headers,
        )
        assert first.status_code == 201
        assert first.json()["status"] == "pending"

        second = await client.post(
            REACCESS, json={"reason": "Still ill"}, headers=restricted_patient_headers
        )
        assert second.status_code == 409
        assert second.json()["error"] == "duplicate_request"

        check = await client.get(
            f"{REACCESS}/check-existing", headers=restricted_patient_headers
        )
        assert check.json()["has_pending"] is True

    async def test_empty_reason(self, client, restricted_patient, restricted_patient_headers) -> None:
        """Blank reasons are validation failures."""
        response = await client.post(
            REACCESS, json={"reason": "   "}, headers=restricted_patient_headers
        )

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    async def test_admin_approves(
        self, client, restricted_patient, pending_request, admin_headers, admin_id
    ) -> None:
        """Approval reactivates the account."""
        listing = await client.get(REACCESS, headers=admin_headers)
        assert [item["id"] for item in listing.json()] == [pending_request.id]
        assert listing.json()[0]["patient_name"] == "Sam Restricted"

        response = await client.post(
            f"{REACCESS}/{pending_request.id}/approve", headers=admin_headers
        )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "approved"
        assert body["admin_response"] == "Your request has been approved"
        assert body["processed_by"] == admin_id

        state = await client.get(
            f"/api/v1/patients/{restricted_patient.id}/account-state", headers=admin_headers
        )
        assert state.json()["status"] == "active"
        assert state.json()["missed_count"] == 0

        again = await client.post(
            f"{REACCESS}/{pending_request.id}/reject", headers=admin_headers
        )
        assert again.status_code == 422

    async def test_reject_with_response(
        self, client, pending_request, admin_headers
    ) -> None:
        """Reviewers can explain a rejection."""
        response = await client.post(
            f"{REACCESS}/{pending_request.id}/reject",
            json={"response_text": "Please call the clinic"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["admin_response"] == "Please call the clinic"

    async def test_doctor_cannot_review(
        self, client, doctor, pending_request, doctor_headers
    ) -> None:
        """Only admins adjudicate."""
        response = await client.post(
            f"{REACCESS}/{pending_request.id}/approve", headers=doctor_headers
        )

        assert response.status_code == 403

    async def test_staff_check_existing_by_patient_id(
        self, client, restricted_patient, pending_request, nurse_headers
    ) -> None:
        """Staff check on behalf of a patient."""
        response = await client.get(
            f"{REACCESS}/check-existing",
            params={"patient_id": restricted_patient.id},
            headers=nurse_headers,
        )

        assert response.status_code == 200
        assert response.json()["request"]["id"] == pending_request.id


class TestFailureResponse:
    """Tests for rendering failures."""

    @pytest.mark.parametrize(
        ("kind", "status_code"),
        [
            (ErrorKind.NOT_FOUND, 404),
            (ErrorKind.PATIENT_RESTRICTED, 403),
            (ErrorKind.SCHEDULING_CONFLICT, 409),
            (ErrorKind.DUPLICATE_REQUEST, 409),
            (ErrorKind.VALIDATION_ERROR, 422),
            (ErrorKind.PERSISTENCE_FAILURE, 500),
        ],
    )
    def test_status_codes(self, kind: ErrorKind, status_code: int) -> None:
        """Each failure kind has a fixed status code."""
        response = failure_response(Failure(kind=kind, message="x"))

        assert response.status_code == status_code

    def test_persistence_failure_is_generic(self) -> None:
        """Storage errors never leak their message."""
        response = failure_response(
            Failure(
                kind=ErrorKind.PERSISTENCE_FAILURE,
                message="duplicate key value violates constraint",
                details={"table": "appointments"},
            )
        )

        assert b"duplicate key" not in response.body
        assert b'"details":{}' in response.body
