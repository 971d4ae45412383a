"""Domain service: Tax Profile Resolution.

Branch admins and staff bill under the owner's tax settings.  For them
the owner profile is looked up by role; if that lookup fails, times out
or finds nothing, the acting user's own profile is used instead.  The
failure is logged and never raised.

The owner lookup runs on a worker thread so callers can show totals
immediately and recompute once the lookup settles.  The acting user's
own profile is read on the same pool and bounded by the same timeout;
if it cannot be read the user is treated as having no profile.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

from rentals.domain.model.tax_profile import TaxProfile, UserRole
from rentals.domain.repository.profile_repository import ProfileRepository

logger = logging.getLogger(__name__)


class PendingProfile:
    """The profile to bill under, possibly still being looked up."""

    def __init__(
        self,
        own: TaxProfile | None,
        owner_lookup: Future | None = None,
    ) -> None:
        self._own = own
        self._owner_lookup = owner_lookup

    @property
    def done(self) -> bool:
        return self._owner_lookup is None or self._owner_lookup.done()

    def profile(self, timeout: float | None = None) -> TaxProfile | None:
        """Wait at most *timeout* seconds, falling back to the own profile."""
        if self._owner_lookup is None:
            return self._own
        try:
            owner = self._owner_lookup.result(timeout=timeout)
        except FutureTimeoutError:
            logger.warning("Owner tax profile lookup timed out; using own profile")
            return self._own
        except Exception:
            logger.warning("Owner tax profile lookup failed; using own profile", exc_info=True)
            return self._own
        if owner is None:
            logger.warning("No owner tax profile found; using own profile")
            return self._own
        return owner


class TaxProfileResolver:

    def __init__(
        self,
        profile_repo: ProfileRepository,
        executor: Executor | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._profile_repo = profile_repo
        self._executor = executor or ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="tax-profile"
        )
        self._timeout = timeout

    def start(self, user_id: str) -> PendingProfile:
        """Begin resolving the profile *user_id* bills under."""
        own = self._own_profile(user_id)
        if own is None or not own.role.is_delegated:
            return PendingProfile(own)
        lookup = self._executor.submit(self._profile_repo.get_by_role, UserRole.SUPER_ADMIN)
        return PendingProfile(own, lookup)

    def resolve(self, user_id: str) -> TaxProfile | None:
        """Resolve, waiting no longer than the configured timeout."""
        return self.start(user_id).profile(timeout=self._timeout)

    def _own_profile(self, user_id: str) -> TaxProfile | None:
        lookup = self._executor.submit(self._profile_repo.get_by_user_id, user_id)
        try:
            return lookup.result(timeout=self._timeout)
        except FutureTimeoutError:
            logger.warning("Tax profile lookup for %s timed out; billing without one", user_id)
        except Exception:
            logger.warning(
                "Tax profile lookup for %s failed; billing without one", user_id, exc_info=True
            )
        return None
