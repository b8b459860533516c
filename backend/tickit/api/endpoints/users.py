"""Endpoints about the authenticated user."""

from __future__ import annotations

from flask import Blueprint, request

from tickit.api.deps import activity_service, auth_service, json_response, timing
from tickit.api.security import current_principal
from tickit.core.errors import Unauthorized
from tickit.schemas import ActivityEntrySchema, ActivityQuerySchema, PrincipalSchema
from tickit.services.auth.dto import PrincipalOut

bp = Blueprint("users", __name__)

principal_schema = PrincipalSchema()
activity_query_schema = ActivityQuerySchema()
activity_list_schema = ActivityEntrySchema(many=True)


def _require_principal() -> PrincipalOut:
    principal = current_principal()
    if principal is None:  # pragma: no cover - the authentication filter runs first
        raise Unauthorized("Authentication required")
    return principal


@bp.get("/me")
@timing
def me():
    """Return the authenticated user's profile."""

    principal = _require_principal()
    profile = auth_service().whoami(principal.username)
    return json_response(principal_schema.dump(profile))


@bp.get("/me/activity")
@timing
def my_activity():
    """Return the newest activity-log entries of the authenticated user."""

    principal = _require_principal()
    args = activity_query_schema.load(request.args)
    entries = activity_service().recent(principal.username, limit=args["limit"])
    data = [{"action": action, "timestamp": ts} for action, ts in entries]
    return json_response(activity_list_schema.dump(data))
