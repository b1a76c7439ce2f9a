import logging
from uuid import uuid4

from app.schemas.application import ApplicationStatus, Role
from conftest import auth_headers, make_actor, make_application, make_complete_application, make_token

S = ApplicationStatus


def test_missing_token_is_rejected(client, fake_store):
    application = fake_store.put(make_application())
    response = client.get(f"/api/v1/applications/{application.id}/transitions")
    assert response.status_code == 401
    body = response.json()
    assert body["code"] == "authentication_required"
    assert body["data"] is None


def test_invalid_token_is_rejected(client, fake_store):
    application = fake_store.put(make_application())
    response = client.get(
        f"/api/v1/applications/{application.id}/transitions",
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401
    assert response.json()["code"] == "authentication_required"


def test_unknown_role_claim_is_rejected(client, fake_store):
    actor = make_actor(Role.OEM)
    application = fake_store.put(make_application(applicant_id=actor.id))
    token = make_token(actor, role="AUDITOR")
    response = client.get(
        f"/api/v1/applications/{application.id}/transitions",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 401


def test_unknown_application_returns_404(client):
    response = client.get(
        f"/api/v1/applications/{uuid4()}/transitions", headers=auth_headers(make_actor(Role.ADMIN))
    )
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_access_endpoint_reports_decision(client, fake_store):
    actor = make_actor(Role.OFFICER)
    application = fake_store.put(make_application(status=S.DRAFT))
    response = client.get(
        f"/api/v1/applications/{application.id}/access",
        params={"action": "EDIT"},
        headers=auth_headers(actor),
    )
    assert response.status_code == 200
    decision = response.json()["data"]
    assert decision == {
        "allowed": False,
        "code": "role_not_permitted",
        "message": "Role OFFICER cannot edit applications in DRAFT status",
    }


def test_access_endpoint_logs_denial(client, fake_store, caplog):
    application = fake_store.put(make_application(status=S.DRAFT))
    with caplog.at_level(logging.INFO, logger="app.services.authz"):
        client.get(
            f"/api/v1/applications/{application.id}/access",
            params={"action": "EDIT"},
            headers=auth_headers(make_actor(Role.OFFICER)),
        )
    denials = [r for r in caplog.records if r.name == "app.services.authz"]
    assert len(denials) == 1
    assert "code=role_not_permitted" in denials[0].getMessage()


def test_access_endpoint_with_target_status(client, fake_store):
    actor = make_actor(Role.FIELD_VERIFIER)
    application = fake_store.put(
        make_application(status=S.FIELD_VERIFICATION, assigned_officer_id=actor.id)
    )
    response = client.get(
        f"/api/v1/applications/{application.id}/access",
        params={"action": "TRANSITION", "target_status": "LAB_TESTING"},
        headers=auth_headers(actor),
    )
    assert response.json()["data"]["allowed"] is True


def test_completeness_endpoint(client, fake_store):
    actor = make_actor(Role.OEM)
    application = fake_store.put(make_complete_application(applicant_id=actor.id, geo_photos=1))
    response = client.get(
        f"/api/v1/applications/{application.id}/completeness", headers=auth_headers(actor)
    )
    assert response.status_code == 200
    payload = response.json()["data"]
    assert payload["ready"] is False
    assert payload["errors"] == ["At least 2 geo-tagged photographs are required (Field 19)"]


def test_completeness_hidden_from_other_applicants(client, fake_store):
    application = fake_store.put(make_complete_application())
    response = client.get(
        f"/api/v1/applications/{application.id}/completeness",
        headers=auth_headers(make_actor(Role.OEM)),
    )
    assert response.status_code == 403
    assert response.json()["code"] == "ownership_violation"


def test_transitions_endpoint_lists_targets(client, fake_store):
    actor = make_actor(Role.OFFICER)
    application = fake_store.put(
        make_application(status=S.UNDER_REVIEW, assigned_officer_id=actor.id)
    )
    response = client.get(
        f"/api/v1/applications/{application.id}/transitions", headers=auth_headers(actor)
    )
    assert response.status_code == 200
    payload = response.json()["data"]
    assert payload["status"] == "UNDER_REVIEW"
    assert payload["role"] == "OFFICER"
    assert payload["targets"] == ["QUERIED", "COMMITTEE_REVIEW"]


def test_submit_then_history(client, fake_store):
    actor = make_actor(Role.OEM)
    application = fake_store.put(make_complete_application(applicant_id=actor.id))

    response = client.post(
        f"/api/v1/applications/{application.id}/submit", headers=auth_headers(actor)
    )
    assert response.status_code == 200
    payload = response.json()["data"]
    assert payload["status"] == "SUBMITTED"
    assert payload["version"] == 2
    assert payload["submitted_at"] is not None

    history = client.get(
        f"/api/v1/applications/{application.id}/history", headers=auth_headers(actor)
    ).json()["data"]
    assert history["total"] == 1
    assert history["items"][0]["from_status"] == "DRAFT"
    assert history["items"][0]["to_status"] == "SUBMITTED"


def test_submit_incomplete_returns_error_list(client, fake_store):
    actor = make_actor(Role.OEM)
    application = fake_store.put(
        make_complete_application(applicant_id=actor.id, declaration_accepted=False)
    )
    response = client.post(
        f"/api/v1/applications/{application.id}/submit", headers=auth_headers(actor)
    )
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "incomplete_application"
    assert body["details"]["errors"] == ["Declaration must be accepted"]


def test_double_submit_returns_400(client, fake_store):
    actor = make_actor(Role.OEM)
    application = fake_store.put(make_complete_application(applicant_id=actor.id))
    client.post(f"/api/v1/applications/{application.id}/submit", headers=auth_headers(actor))

    response = client.post(
        f"/api/v1/applications/{application.id}/submit", headers=auth_headers(actor)
    )
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_state_transition"
    assert response.json()["message"] == "Only draft applications can be submitted"


def test_withdraw_with_reason(client, fake_store):
    actor = make_actor(Role.OEM)
    application = fake_store.put(make_application(applicant_id=actor.id, status=S.QUERIED))
    response = client.post(
        f"/api/v1/applications/{application.id}/withdraw",
        json={"reason": "Product line discontinued"},
        headers=auth_headers(actor),
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "WITHDRAWN"
    assert fake_store.history[application.id][0].remarks == "Product line discontinued"


def test_withdraw_without_body(client, fake_store):
    actor = make_actor(Role.OEM)
    application = fake_store.put(make_application(applicant_id=actor.id))
    response = client.post(
        f"/api/v1/applications/{application.id}/withdraw", headers=auth_headers(actor)
    )
    assert response.status_code == 200
    assert fake_store.history[application.id][0].remarks == "Application withdrawn by OEM"


def test_resubmit_endpoint(client, fake_store):
    actor = make_actor(Role.OEM)
    application = fake_store.put(make_complete_application(applicant_id=actor.id, status=S.QUERIED))
    response = client.post(
        f"/api/v1/applications/{application.id}/resubmit", headers=auth_headers(actor)
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "RESUBMITTED"


def test_change_status_by_admin(client, fake_store):
    application = fake_store.put(make_application(status=S.FINAL_REVIEW))
    response = client.patch(
        f"/api/v1/applications/{application.id}/status",
        json={"status": "REJECTED", "remarks": "Emission limits exceeded"},
        headers=auth_headers(make_actor(Role.ADMIN)),
    )
    assert response.status_code == 200
    payload = response.json()["data"]
    assert payload["status"] == "REJECTED"
    assert payload["rejection_reason"] == "Emission limits exceeded"
    assert payload["rejected_at"] is not None


def test_change_status_illegal_target(client, fake_store):
    actor = make_actor(Role.FIELD_VERIFIER)
    application = fake_store.put(
        make_application(status=S.FIELD_VERIFICATION, assigned_officer_id=actor.id)
    )
    response = client.patch(
        f"/api/v1/applications/{application.id}/status",
        json={"status": "APPROVED"},
        headers=auth_headers(actor),
    )
    assert response.status_code == 403
    body = response.json()
    assert body["code"] == "illegal_transition"
    assert body["details"]["target_status"] == "APPROVED"
    assert fake_store.plans == []


def test_change_status_by_oem_is_not_permitted(client, fake_store):
    actor = make_actor(Role.OEM)
    application = fake_store.put(make_application(status=S.SUBMITTED, applicant_id=actor.id))
    response = client.patch(
        f"/api/v1/applications/{application.id}/status",
        json={"status": "UNDER_REVIEW"},
        headers=auth_headers(actor),
    )
    assert response.status_code == 403
    assert response.json()["code"] == "role_not_permitted"


def test_change_status_rejects_unknown_status(client, fake_store):
    application = fake_store.put(make_application(status=S.SUBMITTED))
    response = client.patch(
        f"/api/v1/applications/{application.id}/status",
        json={"status": "ARCHIVED"},
        headers=auth_headers(make_actor(Role.ADMIN)),
    )
    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


def test_request_id_is_echoed(client, fake_store):
    application = fake_store.put(make_application())
    response = client.get(
        f"/api/v1/applications/{application.id}/transitions",
        headers={**auth_headers(make_actor(Role.ADMIN)), "X-Request-ID": "req-123"},
    )
    assert response.headers["x-request-id"] == "req-123"
