"""Parallel Executor - bounded parallelism for provider calls within one job."""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Optional

from docfactory.core.config import Settings


class ParallelExecutor:
    """Runs independent provider calls with a bounded worker pool."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize parallel executor.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.max_parallel_api_calls = max(1, settings.max_parallel_api_calls)

    def execute_api_calls(
        self,
        tasks: list[Callable[[], Any]],
        task_names: Optional[list[str]] = None,
        project_id: Optional[str] = None,
        max_workers: Optional[int] = None,
    ) -> list[tuple[Any, Optional[Exception]]]:
        """
        Execute a batch of API calls in parallel with controlled concurrency.

        Failures are captured per task, never raised, so one bad call does not
        abort its siblings.

        Args:
            tasks: Callables to execute (each should respect a RateLimiter internally)
            task_names: Optional task names for logging
            project_id: Optional project ID for logging context
            max_workers: Maximum parallel workers (defaults to max_parallel_api_calls)

        Returns:
            List of (result, exception) tuples in task order
        """
        if not tasks:
            return []

        max_workers = max_workers or self.max_parallel_api_calls
        log_prefix = f"[{project_id}] " if project_id else ""

        def name_of(i: int) -> str:
            return task_names[i] if task_names and i < len(task_names) else f"api_call_{i+1}"

        # Sequential mode
        if max_workers == 1:
            results = []
            for i, task in enumerate(tasks):
                try:
                    results.append((task(), None))
                except Exception as e:
                    self.logger.warning(f"{log_prefix}❌ {name_of(i)} failed: {e}")
                    results.append((None, e))
            return results

        self.logger.debug(f"{log_prefix}Parallel API calls: {len(tasks)} tasks with max {max_workers} workers")
        start_time = time.time()
        results: list[tuple[Any, Optional[Exception]]] = [(None, None)] * len(tasks)
        completed_count = 0

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_index = {executor.submit(task): i for i, task in enumerate(tasks)}

            for future in as_completed(future_to_index):
                index = future_to_index[future]
                completed_count += 1
                try:
                    results[index] = (future.result(), None)
                    self.logger.debug(
                        f"{log_prefix}✅ {name_of(index)} completed ({completed_count}/{len(tasks)}) "
                        f"in {time.time() - start_time:.2f}s"
                    )
                except Exception as e:
                    self.logger.warning(
                        f"{log_prefix}❌ {name_of(index)} failed ({completed_count}/{len(tasks)}) "
                        f"after {time.time() - start_time:.2f}s: {e}"
                    )
                    results[index] = (None, e)

        successful = sum(1 for _, error in results if error is None)
        self.logger.debug(
            f"{log_prefix}API batch complete: {successful}/{len(tasks)} successful in {time.time() - start_time:.2f}s"
        )
        return results
