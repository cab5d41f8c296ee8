from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Subject:
    """Domain entity: an employee as known to the identity service.

    Note: Read-only for the core; only id and name are used for display.
    """

    subject_id: int
    display_name: str
    organization: Optional[str]
    role: Role = Role.EMPLOYEE
    is_active: bool = True
