"""Bounded pool of isolated render worker processes.

Each ``WorkerSlot`` owns a single-process ``ProcessPoolExecutor`` started
with the ``spawn`` method, so no two slots share interpreter state. The pool
keeps its own FIFO backlog and hands the oldest queued job to whichever slot
frees up first, which caps concurrent renders at the slot count.

A slot whose process dies is restarted in place: the job it was running
fails with ``RenderError`` and the slot keeps serving later jobs.
"""

from __future__ import annotations

import functools
import itertools
import logging
import multiprocessing as mp
import os
import pickle
import threading
from collections import deque
from concurrent.futures import CancelledError, Future, ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from .errors import PoolClosedError, PoolSetupError, RenderError

logger = logging.getLogger(__name__)

RenderTarget = Callable[[Any], Any]


@dataclass(frozen=True)
class RenderJob:
    payload: Any
    sequence: int


def _ensure_importable(func: Optional[Callable[..., Any]], role: str) -> None:
    if func is None:
        return
    if not callable(func):
        raise PoolSetupError(f"Render {role} {func!r} is not callable.")
    try:
        pickle.dumps(func)
    except (pickle.PicklingError, AttributeError, TypeError) as exc:
        raise PoolSetupError(
            f"Render {role} {getattr(func, '__qualname__', func)!r} must be a "
            "module-level function importable by worker processes."
        ) from exc


class WorkerSlot:
    """One isolated worker process running at most one job at a time."""

    def __init__(
        self,
        index: int,
        initializer: Optional[Callable[[], None]],
        mp_context: Any,
    ) -> None:
        self.index = index
        self.initializer = initializer
        self.mp_context = mp_context
        self.job: Optional[RenderJob] = None
        self.pid: Optional[int] = None
        self.restarts = 0
        self.executor = self._create_executor()

    def _create_executor(self) -> ProcessPoolExecutor:
        return ProcessPoolExecutor(
            max_workers=1,
            mp_context=self.mp_context,
            initializer=self.initializer,
        )

    @property
    def idle(self) -> bool:
        return self.job is None

    def start(self) -> None:
        self.pid = self.executor.submit(os.getpid).result()
        logger.debug("render slot %d started with pid %s", self.index, self.pid)

    def submit(self, target: RenderTarget, job: RenderJob) -> Future:
        try:
            future = self.executor.submit(target, job.payload)
        except BrokenProcessPool:
            self.restart()
            future = self.executor.submit(target, job.payload)
        self.job = job
        return future

    def restart(self) -> None:
        # A broken executor has already terminated its worker, and this may
        # run on that executor's own management thread, so it is only replaced.
        self.executor = self._create_executor()
        self.pid = None
        self.restarts += 1
        logger.warning("render slot %d restarted (restart #%d)", self.index, self.restarts)

    def shutdown(self, wait: bool = True) -> None:
        self.executor.shutdown(wait=wait, cancel_futures=True)


class RenderPool:
    """Run render jobs on ``size`` isolated worker processes.

    ``submit`` never blocks: it queues the job and returns a
    ``concurrent.futures.Future`` that resolves to the target's return value
    or fails with ``RenderError``.
    """

    def __init__(
        self,
        target: RenderTarget,
        size: int,
        initializer: Optional[Callable[[], None]] = None,
        mp_context: Any = None,
    ) -> None:
        if not isinstance(size, int) or isinstance(size, bool) or size < 1:
            raise PoolSetupError(f"Pool size must be a positive integer, got {size!r}.")
        _ensure_importable(target, "target")
        _ensure_importable(initializer, "initializer")

        self._target = target
        self._lock = threading.Lock()
        self._settled = threading.Condition(self._lock)
        self._pending: Deque[Tuple[RenderJob, Future]] = deque()
        self._sequence = itertools.count(1)
        self._closed = False
        self.peak_active = 0

        context = mp_context or mp.get_context("spawn")
        self._slots = [WorkerSlot(index, initializer, context) for index in range(size)]

    @property
    def size(self) -> int:
        return len(self._slots)

    @property
    def slots(self) -> Tuple[WorkerSlot, ...]:
        return tuple(self._slots)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def active_count(self) -> int:
        with self._lock:
            return self._active_locked()

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "size": len(self._slots),
                "active": self._active_locked(),
                "pending": len(self._pending),
                "peak_active": self.peak_active,
                "restarts": sum(slot.restarts for slot in self._slots),
                "closed": self._closed,
            }

    def start(self) -> None:
        """Spawn every slot's process and run its initializer."""
        for slot in self._slots:
            try:
                slot.start()
            except BrokenProcessPool as exc:
                self.drain(timeout=0)
                raise PoolSetupError(
                    f"Render slot {slot.index} failed to start; check the worker initializer."
                ) from exc

    def submit(self, payload: Any) -> Future:
        future: Future = Future()
        with self._lock:
            if self._closed:
                raise PoolClosedError("Render pool is shutting down.")
            job = RenderJob(payload=payload, sequence=next(self._sequence))
            self._pending.append((job, future))
            started = self._dispatch_locked()
        self._watch(started)
        return future

    def _active_locked(self) -> int:
        return sum(1 for slot in self._slots if not slot.idle)

    def _dispatch_locked(self) -> List[Tuple[WorkerSlot, RenderJob, Future, Future]]:
        started = []
        for slot in self._slots:
            if not self._pending:
                break
            if not slot.idle:
                continue
            while self._pending:
                job, future = self._pending.popleft()
                # False means the caller cancelled while the job was queued.
                if future.set_running_or_notify_cancel():
                    break
            else:
                break
            try:
                inner = slot.submit(self._target, job)
            except Exception as exc:
                logger.warning("could not dispatch job #%d to slot %d: %s", job.sequence, slot.index, exc)
                inner = Future()
                inner.set_exception(exc)
            started.append((slot, job, future, inner))

        active = self._active_locked()
        if active > self.peak_active:
            self.peak_active = active
        return started

    def _watch(self, started: List[Tuple[WorkerSlot, RenderJob, Future, Future]]) -> None:
        # Callbacks may run inline when the inner future is already done, so
        # they are attached only after the pool lock is released.
        for slot, job, future, inner in started:
            inner.add_done_callback(functools.partial(self._on_slot_done, slot, job, future))

    def _on_slot_done(self, slot: WorkerSlot, job: RenderJob, future: Future, inner: Future) -> None:
        error: Optional[RenderError] = None
        result = None
        try:
            result = inner.result()
        except BrokenProcessPool as exc:
            error = RenderError("PDF generation failed: render worker exited unexpectedly")
            error.__cause__ = exc
            with self._lock:
                if not self._closed:
                    logger.warning("render slot %d crashed while running job #%d", slot.index, job.sequence)
                    slot.restart()
        except CancelledError as exc:
            error = RenderError("PDF generation failed: render cancelled by shutdown")
            error.__cause__ = exc
        except Exception as exc:
            error = RenderError(f"PDF generation failed: {exc}")
            error.__cause__ = exc

        # The slot stays busy until the caller has its outcome, so drain()
        # never returns ahead of a delivery.
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)

        with self._lock:
            if slot.job is job:
                slot.job = None
            # Draining still runs whatever is queued.
            started = self._dispatch_locked()
            self._settled.notify_all()
        self._watch(started)

    def drain(self, timeout: Optional[float] = None) -> None:
        """Stop accepting jobs, let queued and running jobs finish, release slots."""
        with self._lock:
            if not self._closed:
                logger.info("draining render pool (%d pending)", len(self._pending))
            self._closed = True
            settled = self._settled.wait_for(
                lambda: not self._pending and self._active_locked() == 0,
                timeout=timeout,
            )
            leftovers = list(self._pending)
            self._pending.clear()

        for _job, future in leftovers:
            if future.set_running_or_notify_cancel():
                future.set_exception(RenderError("PDF generation failed: pool shut down before job started"))
        # Jobs still running past the timeout finish in background; their
        # results are discarded.
        for slot in self._slots:
            slot.shutdown(wait=settled)
        if settled:
            logger.info("render pool drained")
        else:
            logger.warning("render pool drain timed out; %d queued jobs failed", len(leftovers))

    def __enter__(self) -> "RenderPool":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.drain()
