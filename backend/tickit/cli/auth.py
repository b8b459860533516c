"""Flask CLI commands for credential housekeeping."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy.exc import IntegrityError

from tickit.uow import SQLAlchemyUnitOfWork

LOGGER = logging.getLogger(__name__)


def _ensure_non_production() -> None:
    """Abort account-bootstrap commands when running in production."""
    config = current_app.config
    app_env = str(config.get("APP_ENV", "")).lower()
    if app_env == "production" and not config.get("TESTING"):
        raise click.UsageError(
            "'flask auth create-user' is restricted to non-production environments."
        )


@click.group("auth")
def auth_cli() -> None:
    """Authentication maintenance commands."""


@auth_cli.command("purge-otps")
@with_appcontext
def purge_otps() -> None:
    """Delete password-reset OTP records whose expiration time has passed."""
    now = datetime.now(UTC)
    with SQLAlchemyUnitOfWork() as uow:
        removed = uow.password_resets.delete_expired(now)
    LOGGER.info("Expired reset OTPs purged: count=%s", removed)
    click.echo(f"Purged {removed} expired password-reset OTP(s).")


@auth_cli.command("create-user")
@click.option("--username", required=True, help="Login handle.")
@click.option("--email", required=True, help="Contact email.")
@click.password_option(help="Initial password.")
@with_appcontext
def create_user(username: str, email: str, password: str) -> None:
    """Create a user directly, bypassing the OTP email flow."""
    _ensure_non_production()
    try:
        with SQLAlchemyUnitOfWork() as uow:
            if uow.users.exists_by_username(username):
                raise click.ClickException(f"Username {username!r} already exists.")
            if uow.users.exists_by_email(email):
                raise click.ClickException(f"Email {email!r} already exists.")
            user = uow.users.model(username=username, email=email)
            user.password = password
            uow.users.add(user)
            user_id = user.id
    except (IntegrityError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    LOGGER.info("User created from CLI: username=%s", username)
    click.echo(f"Created user {username} (id={user_id}).")
