"""Account registration, login and sessions"""

from bootcamp_tracker.auth.identity import (
    AccountHandle,
    IdentityProvider,
    PasswordIdentityProvider,
    hash_password,
    verify_password,
)

__all__ = [
    "AccountHandle",
    "IdentityProvider",
    "PasswordIdentityProvider",
    "hash_password",
    "verify_password",
]
