"""Unit tests for AccountRepository."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from authsvc.repositories.account import AccountRepository
from tests.factories.account import AccountFactory

EXPIRES = datetime(2024, 2, 1, tzinfo=UTC)


class TestAccountRepository:
    """Ensure ``AccountRepository`` performs core persistence operations."""

    @pytest.fixture()
    def repo(self, session):
        return AccountRepository(session=session)

    def test_get_by_email_is_case_insensitive(self, repo, factories_session):
        a = AccountFactory(email="dora@example.com")

        fetched = repo.get_by_email("  DORA@example.com")
        assert fetched is not None
        assert fetched.id == a.id

    def test_exists_by_email(self, repo, factories_session):
        AccountFactory(email="bob@example.com")

        assert repo.exists_by_email("bob@example.com")
        assert not repo.exists_by_email("nonexistent@example.com")

    def test_set_refresh_credential(self, repo, session, factories_session):
        a = AccountFactory()

        assert repo.set_refresh_credential(a.id, "hash-1", EXPIRES)
        session.expire_all()

        refreshed = repo.get(a.id)
        assert refreshed.refresh_token_hash == "hash-1"

    def test_set_refresh_credential_missing_account(self, repo, factories_session):
        assert not repo.set_refresh_credential(999_999, "hash-1", EXPIRES)

    def test_swap_only_matches_expected_hash(self, repo, session, factories_session):
        a = AccountFactory()
        repo.set_refresh_credential(a.id, "hash-1", EXPIRES)

        assert not repo.swap_refresh_credential(
            a.id, expected_hash="other", refresh_token_hash="hash-2", expires_at=EXPIRES
        )
        assert repo.swap_refresh_credential(
            a.id,
            expected_hash="hash-1",
            refresh_token_hash="hash-2",
            expires_at=EXPIRES + timedelta(days=1),
        )
        session.expire_all()
        assert repo.get(a.id).refresh_token_hash == "hash-2"

    def test_count(self, repo, factories_session):
        before = repo.count()
        AccountFactory.create_batch(3)
        assert repo.count() == before + 3
