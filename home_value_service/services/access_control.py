# home_value_service/services/access_control.py
"""
Who may do what with a home value request.

`authorize` is a pure function of the request's assignment state and the
caller; it never touches the database. Endpoints call `ensure_authorized`
before every read or write on a request or its thread.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from home_value_service.middleware.error_handler import AccessDenied
from home_value_service.models.home_value import Claimed, HomeValueRequest, Unclaimed
from home_value_service.schemas.token import TokenPayload


class Operation(str, Enum):
    READ = "read"
    WRITE_MESSAGE = "write_message"
    UPDATE = "update"
    DELETE = "delete"


class DenyReason(str, Enum):
    NOT_OWNER = "not_owner"
    ASSIGNED_TO_OTHER_EXPERT = "assigned_to_other_expert"
    NOT_ASSIGNED_EXPERT = "not_assigned_expert"


DENY_MESSAGES = {
    DenyReason.NOT_OWNER: "Access denied",
    DenyReason.ASSIGNED_TO_OTHER_EXPERT: "Request assigned to another expert",
    DenyReason.NOT_ASSIGNED_EXPERT: "Claim the request before writing to it",
}


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: Optional[DenyReason] = None


ALLOW = AccessDecision(allowed=True)


def _deny(reason: DenyReason) -> AccessDecision:
    return AccessDecision(allowed=False, reason=reason)


def authorize(
    request: HomeValueRequest, actor: TokenPayload, operation: Operation
) -> AccessDecision:
    if actor.sub == request.owner_id:
        return ALLOW

    # Updating address/images stays with the owner.
    if operation == Operation.UPDATE or not actor.is_expert:
        return _deny(DenyReason.NOT_OWNER)

    assignment = request.assignment
    if isinstance(assignment, Claimed):
        if assignment.expert_id == actor.sub:
            return ALLOW
        return _deny(DenyReason.ASSIGNED_TO_OTHER_EXPERT)

    # Unclaimed: any expert may look, nobody but the owner may write.
    if isinstance(assignment, Unclaimed) and operation == Operation.READ:
        return ALLOW
    return _deny(DenyReason.NOT_ASSIGNED_EXPERT)


def ensure_authorized(
    request: HomeValueRequest, actor: TokenPayload, operation: Operation
) -> None:
    decision = authorize(request, actor, operation)
    if not decision.allowed:
        raise AccessDenied(DENY_MESSAGES[decision.reason], reason=decision.reason.value)
