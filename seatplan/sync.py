"""
Reconcile a compiled seat plan with a layout's persisted seat inventory.

Seats are matched by reconciliation key (normalized row + number), never by id, so a
seat that still exists in the plan keeps its inventory id (and whatever holds or
tickets point at it). Changes run in three phases, delete -> update -> create; each
phase processes every item, and any failure stops the run at the end of that phase.
Nothing is rolled back.
"""

from __future__ import annotations

import re
import time
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Optional, TypeVar, Union

from loguru import logger

from .inventory import PersistedSeat, SeatInventory, SeatPayload, payloads_from_plan
from .plan import SeatPlan, normalize_row
from .settings import SyncSettings, load_sync_settings


T = TypeVar("T")

RATE_LIMIT_PATTERN = re.compile(r"(?<!\d)429(?!\d)|too many requests|rate[\s_-]?limit", re.IGNORECASE)


class SyncErrorCode(str, Enum):
    delete_failed = "SEAT_DELETE_FAILED"
    update_failed = "SEAT_UPDATE_FAILED"
    create_failed = "SEAT_CREATE_FAILED"


_HINTS = {
    SyncErrorCode.delete_failed: "Detach active holds or issued tickets from this layout, then save again.",
    SyncErrorCode.update_failed: "Obsolete seats were already removed; review the seat map and save again.",
    SyncErrorCode.create_failed: "Earlier changes were already applied; review the seat map manually before saving again.",
}


class SeatSyncError(Exception):
    def __init__(self, code: SyncErrorCode, message: str, details: list[str]):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = list(details)

    @property
    def hint(self) -> str:
        return _HINTS[self.code]

    def to_dict(self) -> dict:
        return {"code": self.code.value, "message": self.message, "details": self.details, "hint": self.hint}


class DuplicateSeatKeysError(Exception):
    """The plan maps several seats to one reconciliation key; nothing was synced."""

    def __init__(self, keys: list[str]):
        super().__init__(f"{len(keys)} seat key(s) are used by more than one seat: {', '.join(keys)}")
        self.keys = list(keys)

    def to_dict(self) -> dict:
        return {
            "code": "SEAT_KEYS_DUPLICATED",
            "message": str(self),
            "details": self.keys,
            "hint": "Give every row (or table/section) a distinct label, then save again.",
        }


class RateLimitedError(Exception):
    """Raised by an inventory to signal throttling without relying on message text."""


def is_rate_limited(exc: BaseException) -> bool:
    if isinstance(exc, RateLimitedError):
        return True
    if getattr(exc, "status_code", None) == 429:
        return True
    return bool(RATE_LIMIT_PATTERN.search(str(exc)))


def _error_text(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def needs_update(existing: PersistedSeat, desired: SeatPayload) -> bool:
    return (
        normalize_row(existing.row) != normalize_row(desired.row)
        or int(existing.number) != int(desired.number)
        or (existing.label or "") != (desired.label or "")
        or (existing.type or "") != (desired.type or "")
    )


@dataclass
class SeatChangeSet:
    deletes: list[PersistedSeat] = field(default_factory=list)
    updates: list[tuple[PersistedSeat, SeatPayload]] = field(default_factory=list)
    creates: list[SeatPayload] = field(default_factory=list)
    unchanged: list[PersistedSeat] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.deletes or self.updates or self.creates)


def diff_seats(existing: Iterable[PersistedSeat], desired: Iterable[SeatPayload]) -> SeatChangeSet:
    """
    Minimal create/update/delete set turning `existing` into `desired`.

    When several desired seats share a key only the first is kept (`SeatSynchronizer`
    rejects such plans before diffing); when several persisted seats share a key the
    first is matched and the rest are deleted.
    """
    wanted: dict[str, SeatPayload] = {}
    for seat in desired:
        if seat.key in wanted:
            logger.warning("duplicate seat key {} in plan; keeping the first definition", seat.key)
            continue
        wanted[seat.key] = seat

    changes = SeatChangeSet()
    existing_by_key: dict[str, PersistedSeat] = {}
    for rec in existing:
        if rec.key in wanted and rec.key not in existing_by_key:
            existing_by_key[rec.key] = rec
        else:
            changes.deletes.append(rec)

    for key, seat in wanted.items():
        rec = existing_by_key.get(key)
        if rec is None:
            changes.creates.append(seat)
        elif needs_update(rec, seat):
            changes.updates.append((rec, seat))
        else:
            changes.unchanged.append(rec)
    return changes


@dataclass(frozen=True)
class SyncReport:
    deleted: int = 0
    updated: int = 0
    created: int = 0
    unchanged: int = 0

    def to_dict(self) -> dict:
        return {"deleted": self.deleted, "updated": self.updated, "created": self.created, "unchanged": self.unchanged}


class SeatSynchronizer:
    def __init__(
        self,
        inventory: SeatInventory,
        *,
        settings: Optional[SyncSettings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.inventory = inventory
        self.settings = settings or load_sync_settings()
        self._sleep = sleep

    def sync(self, layout_id: str, desired: Union[SeatPlan, Iterable[SeatPayload]]) -> SyncReport:
        payloads = payloads_from_plan(desired) if isinstance(desired, SeatPlan) else list(desired)
        dupes = sorted(k for k, n in Counter(p.key for p in payloads).items() if n > 1)
        if dupes:
            logger.warning("refusing to sync layout {}: duplicate seat keys {}", layout_id, ", ".join(dupes[:10]))
            raise DuplicateSeatKeysError(dupes)

        # fetch errors propagate as-is
        existing = self.inventory.list(layout_id)
        changes = diff_seats(existing, payloads)
        logger.info(
            "sync layout {}: {} existing, {} desired -> delete {}, update {}, create {}",
            layout_id,
            len(existing),
            len(payloads),
            len(changes.deletes),
            len(changes.updates),
            len(changes.creates),
        )

        failures = self._run_phase(
            "delete",
            changes.deletes,
            lambda rec: self.inventory.delete(layout_id, rec.id),
            lambda rec: f"{rec.row}{rec.number}",
        )
        if failures:
            raise SeatSyncError(
                SyncErrorCode.delete_failed,
                f"Failed to remove {len(failures)} seat(s) from layout {layout_id}; "
                "they may still be referenced by holds or tickets.",
                failures,
            )

        failures = self._run_phase(
            "update",
            changes.updates,
            lambda pair: self.inventory.update(layout_id, pair[0].id, pair[1]),
            lambda pair: pair[1].display,
        )
        if failures:
            raise SeatSyncError(
                SyncErrorCode.update_failed,
                f"Failed to update {len(failures)} seat(s) in layout {layout_id}.",
                failures,
            )

        failures = self._run_phase(
            "create",
            changes.creates,
            lambda seat: self.inventory.create(layout_id, seat),
            lambda seat: seat.display,
        )
        if failures:
            raise SeatSyncError(
                SyncErrorCode.create_failed,
                f"Failed to create {len(failures)} seat(s) in layout {layout_id}.",
                failures,
            )

        report = SyncReport(
            deleted=len(changes.deletes),
            updated=len(changes.updates),
            created=len(changes.creates),
            unchanged=len(changes.unchanged),
        )
        logger.info("sync layout {} done: {}", layout_id, report.to_dict())
        return report

    def _run_phase(
        self,
        phase: str,
        items: list[T],
        action: Callable[[T], object],
        describe: Callable[[T], str],
    ) -> list[str]:
        failures: list[str] = []
        if not items:
            return failures
        logger.debug("{} phase: {} item(s)", phase, len(items))
        for item in items:
            try:
                self._call_with_retry(lambda: action(item))
            except Exception as e:  # noqa: BLE001 - item failures are collected, not raised
                line = f"{describe(item)}: {_error_text(e)}"
                logger.warning("{} failed for {}", phase, line)
                failures.append(line)
        return failures

    def _call_with_retry(self, fn: Callable[[], T]) -> T:
        max_attempts = max(1, self.settings.max_attempts)
        attempt = 1
        while True:
            if self.settings.request_delay_s > 0:
                self._sleep(self.settings.request_delay_s)
            try:
                return fn()
            except Exception as e:
                if attempt >= max_attempts or not is_rate_limited(e):
                    raise
                backoff = self.settings.retry_base_delay_s * attempt * attempt
                logger.warning("rate limited (attempt {}/{}), retrying in {:.2f}s", attempt, max_attempts, backoff)
                self._sleep(backoff)
                attempt += 1
