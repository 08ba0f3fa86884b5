# tests/services/test_access_control.py

import pytest

from home_value_service.middleware.error_handler import AccessDenied
from home_value_service.models.home_value import Claimed, HomeValueRequest, Unclaimed
from home_value_service.schemas.token import TokenPayload
from home_value_service.services.access_control import (
    DenyReason,
    Operation,
    authorize,
    ensure_authorized,
)

OWNER = TokenPayload(sub="user_1", role="user", exp=9999999999)
EXPERT_1 = TokenPayload(sub="expert_1", role="expert", exp=9999999999)
EXPERT_2 = TokenPayload(sub="expert_2", role="expert", exp=9999999999)
STRANGER = TokenPayload(sub="user_2", role="user", exp=9999999999)
AGENT = TokenPayload(sub="agent_1", role="agent", exp=9999999999)


def _request(expert_id=None):
    return HomeValueRequest(id="hvr_1", owner_id="user_1", address="12 Elm St", expert_id=expert_id)


def test_assignment_state_follows_expert_id():
    assert _request().assignment == Unclaimed()
    assert _request("expert_1").assignment == Claimed(expert_id="expert_1")


@pytest.mark.parametrize("operation", list(Operation))
def test_owner_may_do_everything(operation):
    assert authorize(_request(), OWNER, operation).allowed
    assert authorize(_request("expert_1"), OWNER, operation).allowed


def test_unclaimed_request_readable_by_any_expert_but_not_writable():
    request = _request()

    assert authorize(request, EXPERT_2, Operation.READ).allowed

    for operation in (Operation.WRITE_MESSAGE, Operation.DELETE):
        decision = authorize(request, EXPERT_2, operation)
        assert not decision.allowed
        assert decision.reason == DenyReason.NOT_ASSIGNED_EXPERT


def test_assigned_expert_may_read_write_and_delete():
    request = _request("expert_1")
    for operation in (Operation.READ, Operation.WRITE_MESSAGE, Operation.DELETE):
        assert authorize(request, EXPERT_1, operation).allowed


def test_assigned_expert_may_not_update_address_or_images():
    decision = authorize(_request("expert_1"), EXPERT_1, Operation.UPDATE)
    assert not decision.allowed
    assert decision.reason == DenyReason.NOT_OWNER


@pytest.mark.parametrize("operation", [Operation.READ, Operation.WRITE_MESSAGE, Operation.DELETE])
def test_other_expert_locked_out_after_claim(operation):
    decision = authorize(_request("expert_1"), EXPERT_2, operation)
    assert not decision.allowed
    assert decision.reason == DenyReason.ASSIGNED_TO_OTHER_EXPERT


@pytest.mark.parametrize("actor", [STRANGER, AGENT])
@pytest.mark.parametrize("operation", list(Operation))
def test_non_expert_strangers_are_denied(actor, operation):
    decision = authorize(_request(), actor, operation)
    assert not decision.allowed
    assert decision.reason == DenyReason.NOT_OWNER


def test_ensure_authorized_raises_access_denied_with_reason():
    with pytest.raises(AccessDenied) as exc_info:
        ensure_authorized(_request("expert_1"), EXPERT_2, Operation.READ)

    assert exc_info.value.status_code == 403
    assert exc_info.value.details == {"reason": "assigned_to_other_expert"}
