from uuid import uuid4

import pytest

from app.schemas.application import Role
from app.services import ownership
from conftest import make_actor, make_application


def test_applicant_owns_their_application():
    actor = make_actor(Role.OEM)
    application = make_application(applicant_id=actor.id)
    assert ownership.owns_or_is_privileged(actor, application)


def test_other_applicant_is_rejected():
    actor = make_actor(Role.OEM)
    application = make_application(applicant_id=uuid4())
    assert not ownership.owns_or_is_privileged(actor, application)
    assert ownership.ownership_violation_message(actor) == (
        "You do not have permission to access this application. "
        "OEM users can only access their own applications."
    )


@pytest.mark.parametrize("role", [Role.ADMIN, Role.SUPER_ADMIN])
def test_privileged_roles_bypass_ownership(role):
    application = make_application(assigned_officer_id=uuid4())
    assert ownership.owns_or_is_privileged(make_actor(role), application)


@pytest.mark.parametrize(
    "role", [Role.OFFICER, Role.COMMITTEE, Role.FIELD_VERIFIER, Role.DEALING_HAND]
)
def test_assigned_staff_scoped_to_assignment(role):
    actor = make_actor(role)
    assert ownership.owns_or_is_privileged(actor, make_application(assigned_officer_id=actor.id))
    assert ownership.owns_or_is_privileged(actor, make_application(assigned_officer_id=None))
    assert not ownership.owns_or_is_privileged(actor, make_application(assigned_officer_id=uuid4()))


def test_officer_violation_message():
    message = ownership.ownership_violation_message(make_actor(Role.OFFICER))
    assert message.endswith("Officers can only access applications assigned to them.")
