"""Account endpoints: registration, lookup, token issuance and rotation."""

from __future__ import annotations

from flask import Blueprint, request

from authsvc.api.deps import (
    REFRESH_COOKIE,
    client_ip,
    json_response,
    require_access_token,
    set_credential_cookies,
)
from authsvc.core.extensions import get_account_service, get_credential_service
from authsvc.schemas import AccountSchema, IssuedCredentialsSchema, RegisterSchema
from authsvc.services._shared.errors import MalformedTokenError
from authsvc.services._shared.policies.common import parse_account_id
from authsvc.services.accounts import RegisterIn
from authsvc.services.credentials import ProvideIn, RefreshIn

bp = Blueprint("accounts", __name__)

register_schema = RegisterSchema()
account_schema = AccountSchema()
issued_schema = IssuedCredentialsSchema()


@bp.post("")
def register():
    """Register a new account and return its public representation."""

    payload = register_schema.load(request.get_json(silent=True) or {})
    account = get_account_service().register(RegisterIn(**payload))
    return json_response({"data": account_schema.dump(account)}, status=201)


@bp.get("/<account_id>")
@require_access_token
def get_account(account_id: str):
    """Return one account; requires an access token issued to this caller."""

    account = get_account_service().get(account_id)
    return json_response({"data": account_schema.dump(account)})


@bp.post("/<account_id>/tokens")
def provide(account_id: str):
    """Issue a token pair for an existing account."""

    issued = get_credential_service().provide(
        ProvideIn(account_id=parse_account_id(account_id), client_ip=client_ip())
    )
    response = json_response({"data": issued_schema.dump(issued)}, status=201)
    return set_credential_cookies(response, issued)


@bp.post("/<account_id>/refresh")
def refresh(account_id: str):
    """Rotate the ``refreshToken`` cookie into a brand-new pair."""

    raw = request.cookies.get(REFRESH_COOKIE)
    if not raw:
        raise MalformedTokenError("missing refresh token")
    issued = get_credential_service().refresh(
        RefreshIn(
            account_id=parse_account_id(account_id),
            refresh_token=raw,
            client_ip=client_ip() or "",
        )
    )
    response = json_response({"data": issued_schema.dump(issued)})
    return set_credential_cookies(response, issued)
