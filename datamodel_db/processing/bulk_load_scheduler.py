"""
Bulk Load Scheduler - Bounded Queue + Fixed Worker Pool

Loads many tables in parallel and reports every failure of the run together.

ARCHITECTURE:
- Producer: enqueues every LoadTask into a bounded queue.Queue, then one stop
  sentinel per worker to signal no-more-work
- Workers: N threads, each blocking on its own psql subprocess and database
  connections; blocking one worker does not block the others
- Barrier: Thread.join() on every worker before any result is read
- Fail-slow: a failing table puts its message on a synchronized error queue and
  the worker moves on; after the barrier all messages are combined into one
  BulkLoadError

Threads rather than processes: the work is subprocess, database and file I/O.
No timeouts are applied. A hung copy subprocess blocks its worker for good and
reduces effective parallelism, but does not abort the run.
"""

import logging
import queue
import threading
import time
from typing import List, Optional, Sequence

from ..config.processing_defaults import ProcessingDefaults
from ..exceptions import BulkLoadError, ConfigurationError, RowCountMismatchError
from ..models import LoadResult, LoadTask
from ..monitoring.load_monitor import LoadMonitor


_STOP = object()


class BulkLoadScheduler:
    """
    Worker pool for table loads.

    The loader is any object with a `load(task) -> LoadResult` method that
    raises on failure; TableLoader in production, fakes in tests.
    """

    def __init__(self, loader, num_workers: int = ProcessingDefaults.WORKERS,
                 queue_capacity: int = ProcessingDefaults.QUEUE_CAPACITY,
                 monitor: Optional[LoadMonitor] = None):
        """
        Args:
            loader: Per-table loader
            num_workers: Worker thread count
            queue_capacity: Maximum tasks buffered ahead of the workers

        Raises:
            ConfigurationError: If num_workers or queue_capacity is not positive
        """
        if num_workers <= 0:
            raise ConfigurationError(f"Number of load workers must be a positive integer, not {num_workers}")
        if queue_capacity <= 0:
            raise ConfigurationError(f"Load queue capacity must be a positive integer, not {queue_capacity}")
        self.logger = logging.getLogger(__name__)
        self.loader = loader
        self.num_workers = num_workers
        self.queue_capacity = queue_capacity
        self.monitor = monitor or LoadMonitor()

    def run(self, tasks: Sequence[LoadTask]) -> List[LoadResult]:
        """
        Load every task.

        Returns:
            One LoadResult per task, in completion order

        Raises:
            BulkLoadError: If any table failed; the message names every failure
                and the exception carries all results
        """
        task_queue: queue.Queue = queue.Queue(maxsize=self.queue_capacity)
        result_queue: queue.Queue = queue.Queue()
        error_queue: queue.Queue = queue.Queue()

        self.logger.info(f"Loading {len(tasks)} tables with {self.num_workers} workers")
        self.monitor.start()

        workers = [
            threading.Thread(
                target=self._worker,
                args=(task_queue, result_queue, error_queue),
                name=f"load-worker-{n}",
            )
            for n in range(self.num_workers)
        ]
        for worker in workers:
            worker.start()

        for task in tasks:
            task_queue.put(task)
        for _ in workers:
            task_queue.put(_STOP)

        for worker in workers:
            worker.join()

        self.monitor.stop()
        self.monitor.log_summary()

        results = _drain(result_queue)
        errors = _drain(error_queue)

        if len(results) != len(tasks):
            errors.append(f"{len(tasks) - len(results)} load tasks produced no result")

        if errors:
            message = (
                f"Load failed for {sum(1 for r in results if not r.success)} of {len(tasks)} tables:\n"
                + "\n".join(errors)
            )
            raise BulkLoadError(message, results=results)

        return results

    def _worker(self, task_queue: queue.Queue, result_queue: queue.Queue, error_queue: queue.Queue) -> None:
        while True:
            task = task_queue.get()
            if task is _STOP:
                return
            start = time.time()
            try:
                result = self.loader.load(task)
            except Exception as e:
                message = f"{task.table}: {e}"
                self.logger.error(f"Load failed for {message}")
                error_queue.put(message)
                result = LoadResult(table=task.table, error=str(e), seconds=time.time() - start)
                if isinstance(e, RowCountMismatchError):
                    result.rows_expected, result.rows_actual = e.expected, e.actual
            self.monitor.record(result)
            result_queue.put(result)


def _drain(q: queue.Queue) -> list:
    items = []
    while True:
        try:
            items.append(q.get_nowait())
        except queue.Empty:
            return items
