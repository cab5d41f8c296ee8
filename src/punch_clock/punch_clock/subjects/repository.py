from __future__ import annotations

from typing import Iterable, Mapping, Optional, Protocol

from .model import Subject


class SubjectRepository(Protocol):
    """Read-only access to subjects owned by the identity service."""

    def get_by_id(self, subject_id: int) -> Optional[Subject]:
        raise NotImplementedError

    def get_many(self, subject_ids: Iterable[int]) -> Mapping[int, Subject]:
        raise NotImplementedError
