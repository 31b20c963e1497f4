from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: a member of the user directory.

    Note: Plain data object; the directory is read-only from this service.
    """

    user_id: int
    first_name: str
    last_name: str
    jsd_number: Optional[str]
    cohort_number: int
    role: Role
    email: str = ""
    is_active: bool = True
