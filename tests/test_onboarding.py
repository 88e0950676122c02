"""assign_onboarding_sequence endpoint."""

import pytest

from agency_api.db.models import OnboardingInstance
from tests.conftest import AGENCY_1, AGENCY_2, bearer, staff

URL = "/functions/v1/assign_onboarding_sequence"


def body(**overrides) -> dict:
    payload = {
        "sequence_id": "seq-1",
        "start_date": "2026-03-09",
        "customer_name": "Jordan Rivers",
        "customer_email": "jordan@example.test",
        "assigned_to_staff_user_id": "staff-1-sales",
        "contact_id": "contact-100",
    }
    payload.update(overrides)
    return {key: value for key, value in payload.items() if value is not None}


def test_staff_assigns_sequence(client, db_session):
    response = client.post(URL, json=body(), headers=staff("tok-sales"))

    assert response.status_code == 200
    data = response.json()
    assert data["sequence_id"] == "seq-1"
    assert data["sequence_name"] == "New auto policy"
    assert data["agency_id"] == AGENCY_1
    assert data["start_date"] == "2026-03-09"
    assert data["status"] == "active"

    instance = db_session.query(OnboardingInstance).filter(OnboardingInstance.id == data["instance_id"]).one()
    assert instance.assigned_by_staff_user_id == "staff-1-sales"
    assert instance.assigned_by_user_id is None
    assert instance.contact_id == "contact-100"


def test_platform_user_assigns_to_platform_user(client, db_session):
    payload = body(assigned_to_staff_user_id=None, assigned_to_user_id="user-1", contact_id=None, sale_id="sale-9")

    response = client.post(URL, json=payload, headers=bearer("jwt-user-1"))

    assert response.status_code == 200
    instance = db_session.query(OnboardingInstance).one()
    assert instance.assigned_by_user_id == "user-1"
    assert instance.assigned_to_user_id == "user-1"
    assert instance.sale_id == "sale-9"


def test_admin_assigns_in_any_agency(client):
    payload = body(sequence_id="seq-2", assigned_to_staff_user_id="staff-2", contact_id="contact-of-agency-2")

    response = client.post(URL, json=payload, headers=bearer("jwt-admin"))

    assert response.status_code == 200
    assert response.json()["agency_id"] == AGENCY_2


def test_unknown_sequence(client):
    response = client.post(URL, json=body(sequence_id="seq-missing"), headers=staff("tok-sales"))

    assert response.status_code == 404
    assert response.json() == {"error": "Sequence not found"}


def test_sequence_of_other_agency_forbidden(client, db_session):
    payload = body(sequence_id="seq-2", assigned_to_staff_user_id="staff-2")

    response = client.post(URL, json=payload, headers=staff("tok-sales"))

    assert response.status_code == 403
    assert response.json() == {"error": "Access denied"}
    assert db_session.query(OnboardingInstance).count() == 0


def test_inactive_sequence(client):
    response = client.post(URL, json=body(sequence_id="seq-1-retired"), headers=staff("tok-sales"))

    assert response.status_code == 400
    assert response.json() == {"error": "Cannot assign an inactive sequence"}


def test_assignee_from_other_agency_rejected(client):
    response = client.post(URL, json=body(assigned_to_staff_user_id="staff-2"), headers=staff("tok-sales"))

    assert response.status_code == 400
    assert "assigned_to_staff_user_id" in response.json()["error"]


def test_duplicate_active_assignment_conflicts(client):
    first = client.post(URL, json=body(), headers=staff("tok-sales"))
    second = client.post(URL, json=body(), headers=staff("tok-123"))

    assert first.status_code == 200
    assert second.status_code == 409
    assert response_error(second) == "A sequence is already assigned to this contact"


def test_contact_with_active_sequence_rejects_another_sequence(client, db_session):
    first = client.post(URL, json=body(sequence_id="seq-1"), headers=staff("tok-sales"))
    second = client.post(URL, json=body(sequence_id="seq-1b"), headers=staff("tok-sales"))

    assert first.status_code == 200
    assert second.status_code == 409
    assert db_session.query(OnboardingInstance).count() == 1


def test_sale_with_active_sequence_rejects_another_sequence(client):
    payload = body(contact_id=None, sale_id="sale-9")
    first = client.post(URL, json=payload, headers=staff("tok-sales"))
    second = client.post(URL, json={**payload, "sequence_id": "seq-1b"}, headers=staff("tok-sales"))

    assert first.status_code == 200
    assert second.status_code == 409
    assert response_error(second) == "A sequence is already assigned to this sale"


def test_other_contact_not_blocked(client):
    first = client.post(URL, json=body(), headers=staff("tok-sales"))
    second = client.post(URL, json=body(sequence_id="seq-1b", contact_id="contact-101"), headers=staff("tok-sales"))

    assert first.status_code == 200
    assert second.status_code == 200


@pytest.mark.parametrize(
    "overrides, status, error",
    [
        ({"contact_id": "contact-of-agency-2"}, 403, "Access denied"),
        ({"contact_id": None, "sale_id": "sale-of-agency-2"}, 403, "Access denied"),
        ({"contact_id": "contact-missing"}, 404, "Contact not found"),
        ({"contact_id": None, "sale_id": "sale-missing"}, 404, "Sale not found"),
    ],
)
def test_contact_and_sale_checked_against_agency(client, db_session, overrides, status, error):
    response = client.post(URL, json=body(**overrides), headers=staff("tok-sales"))

    assert response.status_code == status
    assert response.json() == {"error": error}
    assert db_session.query(OnboardingInstance).count() == 0


def test_admin_cannot_mix_agencies(client, db_session):
    payload = body(sequence_id="seq-2", assigned_to_staff_user_id="staff-2", contact_id="contact-100")

    response = client.post(URL, json=payload, headers=bearer("jwt-admin"))

    assert response.status_code == 403
    assert db_session.query(OnboardingInstance).count() == 0


def test_inactive_staff_assignee_rejected(client, db_session):
    response = client.post(URL, json=body(assigned_to_staff_user_id="staff-1-inactive"), headers=staff("tok-123"))

    assert response.status_code == 400
    assert response.json() == {"error": "Cannot assign to an inactive staff user"}
    assert db_session.query(OnboardingInstance).count() == 0


def test_platform_assignee_from_other_agency_rejected(client):
    payload = body(assigned_to_staff_user_id=None, assigned_to_user_id="user-2")

    response = client.post(URL, json=payload, headers=bearer("jwt-user-1"))

    assert response.status_code == 400
    assert response_error(response) == "assigned_to_user_id does not belong to this agency"


def response_error(response) -> str:
    return response.json()["error"]


@pytest.mark.parametrize(
    "overrides, fragment",
    [
        ({"assigned_to_staff_user_id": None}, "Either assigned_to_staff_user_id or assigned_to_user_id"),
        ({"assigned_to_user_id": "user-1"}, "Provide only one of"),
        ({"contact_id": None}, "Either contact_id or sale_id"),
    ],
)
def test_body_rules(client, overrides, fragment):
    response = client.post(URL, json=body(**overrides), headers=staff("tok-sales"))

    assert response.status_code == 400
    assert fragment in response_error(response)
    assert not response_error(response).startswith("Value error")


def test_missing_start_date(client):
    payload = body()
    del payload["start_date"]

    response = client.post(URL, json=payload, headers=staff("tok-sales"))

    assert response.status_code == 400
    assert response_error(response) == "Missing required field: start_date"


def test_malformed_start_date(client):
    response = client.post(URL, json=body(start_date="next tuesday"), headers=staff("tok-sales"))

    assert response.status_code == 400
    assert response_error(response).startswith("Invalid field 'start_date'")
