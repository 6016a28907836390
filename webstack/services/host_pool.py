"""Bounded fan-out of per-host tasks."""

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Optional, Sequence, TypeVar

from webstack.exceptions import OperationInterrupted
from webstack.models.inventory import Host

T = TypeVar("T")


class HostPool:
    """
    Runs one task per host on a bounded thread pool and joins on all of them.

    Each host's task runs on a single worker. Results are collected under a
    lock and returned in fleet order. On KeyboardInterrupt, tasks that have
    not started are cancelled, running tasks finish, and OperationInterrupted
    is raised.
    """

    def __init__(self, concurrency: Optional[int] = None):
        """
        Args:
            concurrency: Maximum parallel hosts (defaults to fleet size)
        """
        self.concurrency = concurrency

    def workers_for(self, host_count: int) -> int:
        if self.concurrency:
            return max(1, min(self.concurrency, host_count))
        return max(1, host_count)

    def run(
        self,
        hosts: Sequence[Host],
        task: Callable[[Host], T],
        on_error: Callable[[Host, Exception], T],
    ) -> List[T]:
        """
        Run task for every host.

        Args:
            hosts: Hosts to fan out over
            task: Per-host callable
            on_error: Converts an unexpected task exception into a result

        Returns:
            One result per host, in the order given

        Raises:
            OperationInterrupted: If the operator interrupted the run
        """
        if not hosts:
            return []

        results: Dict[str, T] = {}
        lock = threading.Lock()

        def worker(host: Host) -> None:
            try:
                outcome = task(host)
            except Exception as e:
                outcome = on_error(host, e)
            with lock:
                results[host.name] = outcome

        executor = ThreadPoolExecutor(
            max_workers=self.workers_for(len(hosts)),
            thread_name_prefix="webstack-host",
        )
        futures = [executor.submit(worker, host) for host in hosts]

        try:
            for future in as_completed(futures):
                future.result()
        except KeyboardInterrupt:
            cancelled = sum(1 for future in futures if future.cancel())
            executor.shutdown(wait=True)
            with lock:
                completed = len(results)
            raise OperationInterrupted(completed=completed, cancelled=cancelled)

        executor.shutdown(wait=True)
        return [results[host.name] for host in hosts]
