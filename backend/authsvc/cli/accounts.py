"""Flask CLI commands for operator account management."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from authsvc.core.extensions import get_account_service, get_credential_service
from authsvc.services._shared.errors import ServiceError
from authsvc.services._shared.policies.common import parse_account_id
from authsvc.services.accounts import RegisterIn
from authsvc.services.credentials import ProvideIn

LOGGER = logging.getLogger(__name__)


@click.group("accounts")
def accounts_cli() -> None:
    """Create accounts and issue tokens from the command line."""


@accounts_cli.command("create")
@click.option("--email", required=True, help="Login email of the new account.")
@click.password_option("--password", help="Password (prompted when omitted).")
@click.option("--first-name", default=None, help="Optional first name.")
@click.option("--last-name", default=None, help="Optional last name.")
@with_appcontext
def create_account(
    email: str, password: str, first_name: str | None, last_name: str | None
) -> None:
    """Register an account."""
    try:
        account = get_account_service().register(
            RegisterIn(email=email, password=password, first_name=first_name, last_name=last_name)
        )
    except ServiceError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Created account id={account.id} email={account.email}")


@accounts_cli.command("issue")
@click.argument("account_id")
@click.option(
    "--ip",
    "client_ip",
    default="127.0.0.1",
    show_default=True,
    help="Address the issued tokens are pinned to.",
)
@with_appcontext
def issue_tokens(account_id: str, client_ip: str) -> None:
    """Issue a token pair for ACCOUNT_ID without a password check."""
    try:
        issued = get_credential_service().provide(
            ProvideIn(account_id=parse_account_id(account_id), client_ip=client_ip)
        )
    except ServiceError as exc:
        raise click.ClickException(str(exc)) from exc
    LOGGER.info(
        "cli.tokens_issued",
        extra={"event": "cli.tokens_issued", "account_id": issued.account_id},
    )
    click.echo(f"access_token={issued.access_token}")
    click.echo(f"access_expires_at={issued.access_expires_at.isoformat()}")
    click.echo(f"refresh_token={issued.refresh_token}")
    click.echo(f"refresh_expires_at={issued.refresh_expires_at.isoformat()}")
