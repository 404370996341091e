"""Authentication endpoints using the credential service."""

from __future__ import annotations

from flask import Blueprint, request

from authsvc.api.deps import client_ip, json_response, set_credential_cookies
from authsvc.core.extensions import get_credential_service
from authsvc.schemas import IssuedCredentialsSchema, LoginSchema
from authsvc.services.credentials import LoginIn

bp = Blueprint("auth", __name__)

login_schema = LoginSchema()
issued_schema = IssuedCredentialsSchema()


@bp.post("/login")
def login():
    """Authenticate email/password and set a fresh token pair as cookies."""

    data = login_schema.load(request.get_json(silent=True) or {})
    issued = get_credential_service().authenticate(
        LoginIn(email=data["email"], password=data["password"], client_ip=client_ip())
    )
    response = json_response({"data": issued_schema.dump(issued)})
    return set_credential_cookies(response, issued)
