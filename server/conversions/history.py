import queue
import logging
import threading

logger = logging.getLogger(__name__)

_STOP = object()


class ConversionLog:
    """
    Append-only history of completed conversions.

    Every append publishes an immutable snapshot of the history to a bounded
    queue. A daemon thread drains the queue and writes the snapshots to the
    log, so callers never wait on logging. When the queue is full the
    snapshot is dropped with a warning.
    """

    def __init__(self, history_size: int = 100, queue_size: int = 32):
        if history_size < 1:
            raise ValueError(f"history_size must be at least 1, got {history_size}")
        self.history_size = history_size
        self._entries = ()
        self._append_lock = threading.Lock()
        self._queue = queue.Queue(maxsize=queue_size)
        self._worker = None

    def snapshot(self) -> tuple:
        return self._entries

    def append(self, result) -> None:
        with self._append_lock:
            self._entries = (self._entries + (result,))[-self.history_size:]
            snapshot = self._entries
            self._ensure_worker()

        try:
            self._queue.put_nowait(snapshot)
        except queue.Full:
            logger.warning("Conversion log is backed up, dropping snapshot of %d records", len(snapshot))

    def _ensure_worker(self) -> None:
        if self._worker is None or not self._worker.is_alive():
            self._worker = threading.Thread(target=self._run, name="conversion-log", daemon=True)
            self._worker.start()

    def _run(self) -> None:
        while True:
            snapshot = self._queue.get()
            try:
                if snapshot is _STOP:
                    return
                latest = snapshot[-1]
                logger.info("Log: %s %s -> %s %s", latest.amount, latest.source, latest.result, latest.target)
                logger.debug("Conversion history now holds %d records", len(snapshot))
                for record in snapshot[:-1]:
                    logger.debug("History: %s %s -> %s %s", record.amount, record.source, record.result, record.target)
            finally:
                self._queue.task_done()

    def flush(self) -> None:
        """Block until every published snapshot has been logged."""
        if self._worker is not None and self._worker.is_alive():
            self._queue.join()

    def close(self) -> None:
        with self._append_lock:
            worker = self._worker
            self._worker = None
        if worker is not None and worker.is_alive():
            self._queue.put(_STOP)
            worker.join()
