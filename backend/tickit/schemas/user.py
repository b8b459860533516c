"""User resource schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate


class PrincipalSchema(Schema):
    """Public representation of the authenticated user."""

    id = fields.Integer(required=True)
    username = fields.String(required=True)
    email = fields.Email(required=True)
    last_login = fields.DateTime(allow_none=True, data_key="lastLogin")
    last_activity = fields.DateTime(allow_none=True, data_key="lastActivity")


class ActivityEntrySchema(Schema):
    action = fields.String(required=True)
    timestamp = fields.String(required=True)


class ActivityQuerySchema(Schema):
    """Query parameters of ``GET /me/activity``."""

    class Meta:
        unknown = EXCLUDE

    limit = fields.Integer(load_default=50, validate=validate.Range(min=1, max=200))
