"""Detector fan-out: run every registered detector concurrently on one image.

Flow:
    validated FoodImage
      ├─ spoilage.predict(image)      ─┐
      ├─ burntFood.predict(image)      │  DetectorExecutor, one task each,
      ├─ ...                           │  timeout counted from predict start
      └─ microplastics.predict(image) ─┘
                       ↓ asyncio.gather (fan-in barrier)
         DetectorResultSet  (one entry per registered detector, sorted by id)

A task that raises, times out, or returns something other than its own
DetectorResult gets the neutral fallback result instead. Cancelling the
caller cancels every wrapper; executor futures that have not started yet
are cancelled with them.

Worker threads cannot be interrupted. A detector that overruns its timeout
keeps its worker until predict returns, and the executor marks it stalled
until then. A stalled detector is not submitted again: its slot in later
requests is filled with the fallback straight away, so one hung detector
holds at most one worker.
"""

import asyncio
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor

from foodguard.errors import DetectorError
from foodguard.models.schemas.detector_result import DetectorResult, DetectorResultSet
from foodguard.services.image_input import FoodImage
from foodguard.services.pipeline.base import BaseDetector
from foodguard.services.pipeline.detector_registry import DetectorRegistry

logger = logging.getLogger(__name__)


class DetectorExecutor:
    """Thread pool for detector calls that remembers calls left running after a timeout."""

    def __init__(self, max_workers: int = 8):
        self.max_workers = max_workers
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="detector")
        self._lock = threading.Lock()
        self._stalled: dict[str, Future] = {}

    def submit(self, fn, *args) -> Future:
        return self._pool.submit(fn, *args)

    def is_stalled(self, detector_id: str) -> bool:
        with self._lock:
            return detector_id in self._stalled

    def stalled_count(self) -> int:
        with self._lock:
            return len(self._stalled)

    def mark_stalled(self, detector_id: str, future: Future) -> None:
        """Hold ``detector_id`` back from new submissions until ``future`` finishes."""
        with self._lock:
            self._stalled[detector_id] = future
            count = len(self._stalled)
        logger.warning(
            "Detector %s still running after timeout, %d of %d workers held by stalled calls",
            detector_id,
            count,
            self.max_workers,
        )
        future.add_done_callback(lambda f: self._release(detector_id, f))

    def _release(self, detector_id: str, future: Future) -> None:
        with self._lock:
            if self._stalled.get(detector_id) is future:
                del self._stalled[detector_id]
                remaining = len(self._stalled)
            else:
                return
        logger.info("Stalled detector %s returned, %d stalled calls left", detector_id, remaining)

    def shutdown(self, wait: bool = False, cancel_futures: bool = True) -> None:
        self._pool.shutdown(wait=wait, cancel_futures=cancel_futures)


async def run_detectors(
    image: FoodImage,
    registry: DetectorRegistry,
    executor: DetectorExecutor,
    *,
    task_timeout: float,
    deadline: float | None = None,
) -> DetectorResultSet:
    """Fan out to all registered detectors and collect one result each.

    A task's timeout starts when its predict call starts on a worker and is
    min(task_timeout, time left before ``deadline`` seconds from now). Time
    spent queued for a worker is bounded by the deadline, or by task_timeout
    when there is none. Never raises for detector-level failures.
    """
    loop = asyncio.get_running_loop()
    deadline_at = loop.time() + deadline if deadline is not None else None

    results = await asyncio.gather(
        *(
            _run_one(loop, executor, detector, image, task_timeout, deadline_at)
            for detector in registry.detectors()
        )
    )
    return DetectorResultSet(results=tuple(results))


async def _run_one(
    loop: asyncio.AbstractEventLoop,
    executor: DetectorExecutor,
    detector: BaseDetector,
    image: FoodImage,
    task_timeout: float,
    deadline_at: float | None,
) -> DetectorResult:
    detector_id = detector.detector_id
    if deadline_at is not None and deadline_at - loop.time() <= 0:
        return _fallback(detector_id, "request deadline exhausted before start")
    if executor.is_stalled(detector_id):
        return _fallback(detector_id, "previous call still running after timeout")

    started = loop.create_future()

    def _call():
        loop.call_soon_threadsafe(_set_started, started)
        return detector.predict(image)

    cfuture = executor.submit(_call)
    future = asyncio.wrap_future(cfuture, loop=loop)
    timeout = task_timeout
    try:
        queue_budget = task_timeout if deadline_at is None else deadline_at - loop.time()
        await asyncio.wait({started}, timeout=max(queue_budget, 0))
        if not started.done() and cfuture.cancel():
            return _fallback(
                detector_id,
                f"no free worker within {max(queue_budget, 0):.2f}s "
                f"({executor.stalled_count()} workers held by stalled calls)",
            )

        if deadline_at is not None:
            timeout = max(min(timeout, deadline_at - loop.time()), 0)
        result = await asyncio.wait_for(future, timeout)
    except asyncio.CancelledError:
        cfuture.cancel()
        raise
    except asyncio.TimeoutError:
        if not cfuture.done():
            executor.mark_stalled(detector_id, cfuture)
        return _fallback(detector_id, f"timed out after {timeout:.2f}s")
    except Exception as e:
        return _fallback(detector_id, f"{type(e).__name__}: {e}")

    if not isinstance(result, DetectorResult):
        return _fallback(detector_id, f"returned {type(result).__name__}, not a DetectorResult")
    if result.detector_id != detector_id:
        return _fallback(detector_id, f"returned a result for {result.detector_id!r}")
    return result


def _set_started(started: asyncio.Future) -> None:
    if not started.done():
        started.set_result(None)


def _fallback(detector_id: str, message: str) -> DetectorResult:
    error = DetectorError(detector_id, message)
    logger.warning("Detector fallback, %s", error)
    return DetectorResult.failed(detector_id, error.message)
