from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import User


class UserRepository(Protocol):
    """Read-only user directory.

    Note (DIP): services depend on this interface, never on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def list_by_cohort(self, cohort_number: int, *, limit: int = 500) -> Sequence[User]:
        """Active students of a cohort ordered by first name."""

        raise NotImplementedError
