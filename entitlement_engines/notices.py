"""
Module: entitlement_engines.notices
Responsibility:
    Soft-degradation records.  The engines never raise for gaps in the
    snapshot; they substitute zero and leave a ``LedgerNotice`` so the
    caller can tell the user why a number looks conservative.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from entitlement_kernel.logging_config import get_logger

logger = get_logger("engines.notices")


class NoticeCode(str, Enum):
    CONFIGURATION_GAP = "configuration_gap"  # missing person, category or calendar
    CARRY_OVER_DEPTH_EXCEEDED = "carry_over_depth_exceeded"
    INVALID_DATE_RANGE = "invalid_date_range"


@dataclass(frozen=True)
class LedgerNotice:
    code: NoticeCode
    detail: str
    subject_id: str | None = None
    year: int | None = None


class NoticeLog:
    """Deduplicating collector for the notices of one computation pass."""

    def __init__(self) -> None:
        self._notices: list[LedgerNotice] = []
        self._seen: set[LedgerNotice] = set()

    def add(
        self,
        code: NoticeCode,
        detail: str,
        subject_id: str | None = None,
        year: int | None = None,
    ) -> None:
        notice = LedgerNotice(code=code, detail=detail, subject_id=subject_id, year=year)
        if notice in self._seen:
            return
        self._seen.add(notice)
        self._notices.append(notice)
        logger.warning(code.value, extra={
            "detail": detail,
            "subject_id": subject_id,
            "notice_year": year,
        })

    def as_tuple(self) -> tuple[LedgerNotice, ...]:
        return tuple(self._notices)

    def __len__(self) -> int:
        return len(self._notices)
