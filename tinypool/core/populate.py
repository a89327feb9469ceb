"""Population scheduling - sync or deferred cloning.

Sync mode (default): Clone immediately when submit() is called.
Async mode: Queue jobs, clone on a background thread while the owner continues.

Either way the clones are only handed back to the owner through poll_all(),
so the Pool's state is only ever mutated on the owning thread.

Example:
    populator = Populator(deepcopy_clone, async_mode=True)
    job = PopulateJob(category="Sound", count=3, template=template)
    populator.submit(job)
    for finished in populator.drain():
        print(finished.items)
"""

from __future__ import annotations

import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional


@dataclass(eq=False)
class PopulateJob:
    """
    Handle on one populate() call.

    Attributes:
        category: Target category name
        count: Number of clones requested
        template: Entity being cloned
        parent: Placement context passed to the cloner
        items: Clones produced so far
        error: Exception raised by the cloner, if any
    """
    category: str
    count: int
    template: Any = None
    parent: Any = None
    items: List[Any] = field(default_factory=list)
    error: Optional[Exception] = None
    _done: threading.Event = field(default_factory=threading.Event, repr=False)

    def done(self) -> bool:
        """True once cloning has finished (successfully or not)."""
        return self._done.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cloning finishes. Returns False on timeout."""
        return self._done.wait(timeout)

    def result(self, timeout: Optional[float] = None) -> List[Any]:
        """Wait for the clones, re-raising the cloner's exception if it failed."""
        if not self.wait(timeout):
            raise TimeoutError(f"Populate job for {self.category!r} still running")
        if self.error is not None:
            raise self.error
        return self.items

    def mark_done(self) -> None:
        self._done.set()


class Populator:
    """
    Runs clone work for PopulateJobs.

    Sync mode: Clone inside submit(), no background thread.
    Async mode: Queue jobs, clone on a background thread.

    Args:
        cloner: Callable (template, parent) -> new item
        async_mode: If True, use background thread for cloning
    """

    def __init__(self, cloner: Callable[[Any, Any], Any], async_mode: bool = False):
        self.cloner = cloner
        self.async_mode = async_mode
        self._finished: queue.Queue[PopulateJob] = queue.Queue()
        self._outstanding: List[PopulateJob] = []

        if async_mode:
            self._pending_queue: queue.Queue[PopulateJob] = queue.Queue()
            self._running = True
            self._thread = threading.Thread(
                target=self._process_loop,
                name="Populator",
                daemon=True
            )
            self._thread.start()

    def submit(self, job: PopulateJob) -> None:
        """
        Submit a job for cloning.

        Sync mode: Clones immediately, job is done on return.
        Async mode: Queues for background processing.

        Raises:
            RuntimeError if shutdown() has already been called (async mode)
        """
        if self.async_mode and not self._running:
            raise RuntimeError("Populator is shut down")
        self._outstanding.append(job)
        if self.async_mode:
            self._pending_queue.put(job)
        else:
            self._run(job)

    def poll_all(self) -> List[PopulateJob]:
        """Get all finished jobs not yet handed back, in completion order."""
        jobs = []
        while True:
            try:
                job = self._finished.get_nowait()
            except queue.Empty:
                break
            self._outstanding.remove(job)
            jobs.append(job)
        return jobs

    def drain(self, timeout: float = 1.0) -> List[PopulateJob]:
        """Wait for outstanding jobs and return everything finished."""
        deadline = time.time() + timeout
        for job in list(self._outstanding):
            job.wait(max(0.0, deadline - time.time()))
        return self.poll_all()

    def shutdown(self) -> None:
        """
        Stop background thread if running.

        Jobs still queued are finished with an error so nobody waits on them forever.
        """
        if self.async_mode:
            self._running = False
            self._thread.join(timeout=1.0)
            while True:
                try:
                    job = self._pending_queue.get_nowait()
                except queue.Empty:
                    break
                job.error = RuntimeError(f"Populator shut down before cloning into {job.category!r}")
                self._finished.put(job)
                job.mark_done()

    @property
    def num_pending(self) -> int:
        """Jobs submitted but not yet handed back by poll_all()."""
        return len(self._outstanding)

    @property
    def is_running(self) -> bool:
        """Check if background thread is running (async mode only)."""
        return self.async_mode and self._thread.is_alive()

    def _run(self, job: PopulateJob) -> None:
        # The error is re-raised by the Pool once the partial clones have landed
        try:
            for _ in range(job.count):
                job.items.append(self.cloner(job.template, job.parent))
        except Exception as e:
            job.error = e
        finally:
            self._finished.put(job)
            job.mark_done()

    def _process_loop(self) -> None:
        """Background thread for async mode."""
        while self._running:
            try:
                job = self._pending_queue.get(timeout=0.01)
            except queue.Empty:
                continue
            self._run(job)
