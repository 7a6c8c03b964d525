"""
Identity resolution for PlantPal.

Maps a login attempt to exactly one user record:

- Local login doubles as registration: an unseen username is created with
  the given password, a known one must match its stored hash.
- External login (GitHub) returns the user already bound to the provider
  id, links the provider id to a password-only account with the same
  username, or creates a new account under a synthesized unique username.

Check-then-create is not atomic. The store's unique constraints are the
authority: a ConflictError on write means another request won the race,
and resolution is run once more before giving up.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger

from plantpal.errors import (
    ConflictError,
    IncorrectPassword,
    PasswordLoginUnavailable,
)
from plantpal.identity.passwords import hash_password, verify_password
from plantpal.storage.protocols import UserStore
from plantpal.storage.user_repository import StoredUser


# Total passes through a resolution, including the retry after a conflict
MAX_RESOLUTION_PASSES = 2


@dataclass
class Resolution:
    """Outcome of identity resolution."""

    user: StoredUser
    created: bool


class IdentityResolver:
    """
    Reconciles local and external logins against the user store.

    Usage:
        resolver = IdentityResolver(user_repository)

        result = resolver.resolve_local("alice", "hunter2")
        result.user.id, result.created

        result = resolver.resolve_external("583231", "alice")
    """

    def __init__(
        self,
        users: UserStore,
        hasher: Callable[[str], str] = hash_password,
        verifier: Callable[[str, str], bool] = verify_password,
        max_suffix_attempts: int = 50,
        fallback_prefix: str = "gh_",
    ):
        """
        Initialize resolver.

        Args:
            users: User store
            hasher: One-way password hash function
            verifier: (password, hash) -> bool
            max_suffix_attempts: Numbered variants of the preferred name to
                try before falling back to a provider-id-based name
            fallback_prefix: Prefix for provider-id-based usernames
        """
        self.users = users
        self.hasher = hasher
        self.verifier = verifier
        self.max_suffix_attempts = max_suffix_attempts
        self.fallback_prefix = fallback_prefix

    # =========================================================================
    # Local login
    # =========================================================================

    def resolve_local(self, username: str, password: str) -> Resolution:
        """
        Log in with a password, registering the username if it is new.

        Raises:
            IncorrectPassword: Password does not match
            PasswordLoginUnavailable: Account has no password credential
            ConflictError: Creation raced twice
        """
        for attempt in range(1, MAX_RESOLUTION_PASSES + 1):
            existing = self.users.get_by_username(username)

            if existing is not None:
                return Resolution(user=self._verify(existing, password), created=False)

            password_hash = self.hasher(password)
            try:
                user = self.users.create(username=username, password_hash=password_hash)
            except ConflictError:
                if attempt == MAX_RESOLUTION_PASSES:
                    raise
                logger.info(f"Username '{username}' claimed concurrently, re-resolving")
                continue

            logger.info(f"Registered local user '{username}' ({user.id})")
            return Resolution(user=user, created=True)

        raise ConflictError(detail=f"Could not resolve local login for '{username}'")

    def _verify(self, user: StoredUser, password: str) -> StoredUser:
        if not user.has_password:
            raise PasswordLoginUnavailable()

        if not self.verifier(password, user.password_hash):
            logger.info(f"Incorrect password for '{user.username}'")
            raise IncorrectPassword()

        return user

    # =========================================================================
    # External login
    # =========================================================================

    def resolve_external(
        self,
        provider_id: str,
        preferred_username: Optional[str] = None,
    ) -> Resolution:
        """
        Log in with an external-provider identity.

        Args:
            provider_id: Provider's stable subject id
            preferred_username: Provider's login/display name

        Raises:
            ConflictError: Creation or linking raced twice
        """
        provider_id = str(provider_id)
        preferred = preferred_username or self._fallback_name(provider_id)

        for attempt in range(1, MAX_RESOLUTION_PASSES + 1):
            bound = self.users.get_by_external_id(provider_id)
            if bound is not None:
                return Resolution(user=bound, created=False)

            try:
                linked = self._link_same_name(preferred, provider_id)
                if linked is not None:
                    return Resolution(user=linked, created=False)

                username = self.unique_username(preferred, provider_id)
                user = self.users.create(username=username, external_id=provider_id)
            except ConflictError:
                if attempt == MAX_RESOLUTION_PASSES:
                    raise
                logger.info(f"External identity {provider_id} claimed concurrently, re-resolving")
                continue

            logger.info(f"Registered external user '{username}' for provider id {provider_id}")
            return Resolution(user=user, created=True)

        raise ConflictError(detail=f"Could not resolve external login {provider_id}")

    def _link_same_name(self, username: str, provider_id: str) -> Optional[StoredUser]:
        existing = self.users.get_by_username(username)
        if existing is None or existing.external_id is not None:
            return None

        # The provider is trusted: ownership of the password account is not re-proven.
        linked = self.users.link_external(existing.id, provider_id)
        if linked is None:
            # Linked by someone else between the read and the write
            raise ConflictError(detail=f"User '{username}' was linked concurrently")

        logger.warning(
            f"Linked provider id {provider_id} to existing account '{username}' "
            f"by matching username, without password re-verification"
        )
        return linked

    def unique_username(self, preferred: str, provider_id: str) -> str:
        """
        Find a free username.

        Tries ``preferred``, then ``preferred-1`` .. ``preferred-N``, then
        ``<prefix><provider_id>``, then ``<prefix><provider_id>-k`` until free.
        """
        if not self.users.username_exists(preferred):
            return preferred

        for n in range(1, self.max_suffix_attempts + 1):
            candidate = f"{preferred}-{n}"
            if not self.users.username_exists(candidate):
                return candidate

        fallback = self._fallback_name(provider_id)
        candidate = fallback
        n = 1
        while self.users.username_exists(candidate):
            candidate = f"{fallback}-{n}"
            n += 1
        return candidate

    def _fallback_name(self, provider_id: str) -> str:
        return f"{self.fallback_prefix}{provider_id}"
