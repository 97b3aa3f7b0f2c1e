"""Editor-side lock session: acquire, heartbeat, status polling, release.

Timers are explicit handles. Every exit path (``release``, ``close``, leaving a
``hold()`` block, a lost heartbeat) cancels them. The release sent on teardown is
best effort: if it never reaches the server the lease simply runs out.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

import httpx

from ..shared.config import settings
from ..shared.logging import get_logger

log = get_logger(__name__)


class RepeatingTimer:
    """Calls ``fn`` every ``interval`` seconds on a daemon thread until cancelled."""

    def __init__(self, interval: float, fn: Callable[[], None], name: str = "repeating-timer"):
        self.interval = interval
        self._fn = fn
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self) -> "RepeatingTimer":
        self._thread.start()
        return self

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self._fn()
            except Exception:
                log.exception("%s tick failed", self._thread.name)

    def cancel(self, timeout: float | None = 1.0) -> None:
        self._stop.set()
        # a tick may cancel its own timer
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()


@dataclass(frozen=True)
class LockState:
    is_locked: bool = False
    holding: bool = False
    locked_by: Optional[str] = None
    locked_by_name: Optional[str] = None
    locked_at: Optional[str] = None
    expires_at: Optional[str] = None
    conflict: bool = False
    available: bool = True

    @classmethod
    def from_body(cls, body: dict, holding: bool = False) -> "LockState":
        return cls(
            is_locked=bool(body.get("isLocked")),
            holding=holding,
            locked_by=body.get("lockedBy"),
            locked_by_name=body.get("lockedByName"),
            locked_at=body.get("lockedAt"),
            expires_at=body.get("expiresAt"),
            available=body.get("available", True),
        )

    @property
    def locked_by_others(self) -> bool:
        return self.is_locked and not self.holding


def _error_detail(resp: httpx.Response) -> dict:
    try:
        detail = resp.json().get("detail")
    except ValueError:
        return {}
    return detail if isinstance(detail, dict) else {"message": detail}


class QuotationLockClient:
    def __init__(
        self,
        http: httpx.Client,
        quotation_id: int,
        heartbeat_interval: float = settings.LOCK_HEARTBEAT_SECONDS,
        poll_interval: float = settings.LOCK_POLL_SECONDS,
        on_lost: Optional[Callable[[], None]] = None,
        base_path: str = f"{settings.API_PREFIX}/quotations",
    ):
        self.http = http
        self.quotation_id = quotation_id
        self.heartbeat_interval = heartbeat_interval
        self.poll_interval = poll_interval
        self.on_lost = on_lost
        self.path = f"{base_path}/{quotation_id}/lock"
        self._mu = threading.Lock()
        self._holding = False
        self._heartbeat: Optional[RepeatingTimer] = None
        self._poller: Optional[RepeatingTimer] = None

    @property
    def holding(self) -> bool:
        return self._holding

    # --- lease ---

    def acquire(self) -> LockState:
        try:
            resp = self.http.post(self.path)
        except httpx.HTTPError as e:
            log.warning("acquire on quotation %s failed: %s", self.quotation_id, e)
            self._drop()
            return LockState(available=False)

        if resp.status_code == 409:
            d = _error_detail(resp)
            self._drop()
            return LockState(
                is_locked=True,
                locked_by=d.get("lockedBy"),
                locked_by_name=d.get("lockedByName"),
                conflict=True,
            )
        if resp.is_error:
            log.warning("acquire on quotation %s rejected: %s", self.quotation_id, resp.status_code)
            self._drop()
            return LockState(available=False)

        try:
            body = resp.json()
        except ValueError:
            log.warning("acquire on quotation %s: unreadable response body", self.quotation_id)
            self._drop()
            return LockState(available=False)

        self._drop()
        timer = RepeatingTimer(
            self.heartbeat_interval, self.heartbeat, name=f"lock-heartbeat-{self.quotation_id}"
        )
        with self._mu:
            self._holding = True
            self._heartbeat = timer
        timer.start()
        return LockState.from_body(body, holding=True)

    def heartbeat(self) -> bool:
        """One renewal. Any failure means we no longer hold the lock."""
        if not self._holding:
            return False
        try:
            resp = self.http.patch(self.path)
            ok = resp.status_code == 200
            reason = "" if ok else f"status {resp.status_code}"
        except httpx.HTTPError as e:
            ok, reason = False, str(e)
        if not ok:
            log.warning("heartbeat on quotation %s failed (%s); lock lost", self.quotation_id, reason)
            if self._drop() and self.on_lost:
                self.on_lost()
        return ok

    def release(self) -> bool:
        self._drop()
        try:
            resp = self.http.delete(self.path)
        except httpx.HTTPError as e:
            log.warning("release on quotation %s not delivered: %s", self.quotation_id, e)
            return False
        if resp.is_error:
            log.warning("release on quotation %s returned %s", self.quotation_id, resp.status_code)
            return False
        try:
            return bool(resp.json().get("released"))
        except (ValueError, AttributeError):
            log.warning("release on quotation %s: unreadable response body", self.quotation_id)
            return False

    def _drop(self) -> bool:
        """Forget the lease locally and stop renewing it. True if we thought we held it."""
        with self._mu:
            was = self._holding
            self._holding = False
            timer, self._heartbeat = self._heartbeat, None
        # joined outside the mutex; the timer thread may be waiting on it
        if timer is not None:
            timer.cancel()
        return was

    # --- status ---

    def status(self) -> LockState:
        try:
            resp = self.http.get(self.path)
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning("lock status for quotation %s unavailable: %s", self.quotation_id, e)
            return LockState(available=False, holding=self._holding)
        return LockState.from_body(body, holding=self._holding)

    def start_polling(self, callback: Callable[[LockState], None]) -> None:
        self.stop_polling()
        self._poller = RepeatingTimer(
            self.poll_interval,
            lambda: callback(self.status()),
            name=f"lock-poll-{self.quotation_id}",
        ).start()

    def stop_polling(self) -> None:
        if self._poller is not None:
            self._poller.cancel()
            self._poller = None

    # --- lifetime ---

    def close(self) -> None:
        self.stop_polling()
        self.release()

    @contextmanager
    def hold(self) -> Iterator[LockState]:
        """Acquire for the duration of the block; release on the way out however it ends."""
        state = self.acquire()
        try:
            yield state
        finally:
            self.close()
