"""Account model: login identity plus its single refresh credential."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, UniqueConstraint, func, true
from sqlalchemy.orm import Mapped, mapped_column, validates

from authsvc.core.extensions import db


class Account(db.Model):
    """
    Authentication identity.

    The refresh credential lives on the account row itself, so an account
    can hold at most one live refresh token hash at a time.

    Fields
    ------
    email : str
        Login and contact address. Stored normalized (lowercase, trimmed).
    password_hash : str
        Self-describing PBKDF2 hash; never serialized.
    first_name, last_name : str | None
        Optional names used in notifications.
    active : bool
        Inactive accounts cannot authenticate.
    refresh_token_hash : str | None
        Hash of the live refresh token, ``None`` before the first issuance.
    refresh_token_expires : datetime | None
        Absolute expiry of the live refresh token (UTC).
    """

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    refresh_token_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    refresh_token_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (UniqueConstraint("email", name="uq_accounts_email"),)

    def __repr__(self) -> str:
        # Never render the email or any hash
        return f"<Account id={self.id}>"

    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and sanity-check the email.

        :raises ValueError: If the email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        # Minimal sanity check; full validation happens at API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v
