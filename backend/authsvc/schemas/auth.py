"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class LoginSchema(Schema):
    """Input payload for authenticating an account.

    Password length is not validated here: a short password simply fails to
    match, and the hasher owns the minimum-length rule for new secrets.
    """

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, load_only=True, validate=validate.Length(max=128))


class IssuedCredentialsSchema(Schema):
    """Response payload describing a freshly issued pair.

    Token values travel only in ``HttpOnly`` cookies and are not dumped.
    """

    account_id = fields.Integer(required=True)
    access_expires_at = fields.DateTime(required=True)
    refresh_expires_at = fields.DateTime(required=True)
