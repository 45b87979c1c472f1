"""Requirement ID lookup with prefix-aware partial ID reconstruction."""
from __future__ import annotations

import logging
from typing import Iterable

from src.shared.errors import DuplicateRequirementError
from src.shared.models.coverage import RequirementRecord

logger = logging.getLogger(__name__)


class RequirementIndex:
    """Index of every requirement row keyed by its Req_ID.

    Derivation text may reference requirements by a shortened ID (``R12``
    or ``12`` instead of ``MS-XXXX_R12``).  The configured prefix is used
    to rebuild the full ID before comparing against the table.

    Raises:
        DuplicateRequirementError: if two rows share an ID, either exactly
            or after prefix normalization.
    """

    def __init__(self, records: Iterable[RequirementRecord], prefix: str | None = None) -> None:
        self._prefix = prefix
        self._records: dict[str, RequirementRecord] = {}
        self._full_ids: dict[str, str] = {}
        self._lookup: dict[str, str] = {}

        for record in records:
            if record.id in self._records:
                raise DuplicateRequirementError(record.id, record.id)
            self._records[record.id] = record

        for req_id in self._records:
            full = self.full_id(req_id)
            if full in self._full_ids:
                raise DuplicateRequirementError(self._full_ids[full], req_id)
            self._full_ids[full] = req_id
            self._lookup.setdefault(full.lower(), req_id)

    @property
    def prefix(self) -> str | None:
        return self._prefix

    def __contains__(self, req_id: object) -> bool:
        return req_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    def get(self, req_id: str) -> RequirementRecord | None:
        return self._records.get(req_id)

    def __getitem__(self, req_id: str) -> RequirementRecord:
        return self._records[req_id]

    def full_id(self, partial_id: str) -> str:
        """Rebuild a full requirement ID from a possibly abbreviated one.

        The longest tail of the prefix that the ID already starts with is
        treated as present; the rest of the prefix is prepended.
        """
        if not self._prefix:
            return partial_id
        for index in range(len(self._prefix) + 1):
            head = self._prefix[index:]
            if partial_id.lower().startswith(head.lower()):
                return self._prefix[:index] + partial_id
        return partial_id

    def resolve(self, req_id: str, partial: bool = False) -> str | None:
        """Return the table's Req_ID for *req_id*, or ``None`` if unknown.

        Args:
            req_id: ID as written in derivation text or a test log.
            partial: expand *req_id* with the prefix before matching.
        """
        if req_id in self._records:
            return req_id
        candidate = self.full_id(req_id) if partial else req_id
        return self._lookup.get(candidate.lower())
