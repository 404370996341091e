"""Factory Boy definition for :class:`authsvc.models.account.Account`."""

from __future__ import annotations

import factory
from werkzeug.security import generate_password_hash

from authsvc.models.account import Account
from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"


class AccountFactory(BaseFactory):
    """Build persisted :class:`Account` rows with a fast PBKDF2 hash."""

    class Meta:
        model = Account

    id = None  # let autoincrement handle it
    email = factory.Sequence(lambda n: f"account{n}@example.com")
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    active = True
    password_hash = factory.LazyFunction(lambda: "")  # set via postgen

    @factory.post_generation
    def password(obj, create, extracted, **kwargs):
        """Hash the given (or default) password with a low work factor."""
        obj.password_hash = generate_password_hash(
            extracted or DEFAULT_PASSWORD, method="pbkdf2:sha256:1000"
        )
