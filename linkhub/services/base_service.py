"""Base service class: ServiceRun tracking and session housekeeping."""
import time
import traceback
from abc import ABC
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from linkhub.repositories.base_repository import BaseRepository
from linkhub.repositories.service_run_repository import ServiceRunRepository
from linkhub.utils.logger import logger


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class BaseService(ABC):
    """
    Base class for the scheduler, publisher, token refresher and friends.

    Worker ticks, CLI commands and user actions run inside track_execution so
    every run leaves a ServiceRun row (see `linkhub-cli recent-runs`).

    Passing `db` shares one session between the service and all of its
    repositories; otherwise each repository opens its own.
    """

    def __init__(self, db: Optional[Session] = None):
        self.service_run_repo = ServiceRunRepository(db)
        self.service_name = self.__class__.__name__

    @contextmanager
    def track_execution(
        self,
        method_name: str,
        user_id: Optional[UUID] = None,
        triggered_by: str = "system",
        input_params: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Iterator[str]:
        """
        Record one service run around a block of work.

        Usage:
            with self.track_execution("process_queue", triggered_by="scheduler") as run_id:
                result = ...
                self.set_result_summary(run_id, result)

        Args:
            method_name: Name of the method being executed
            user_id: User the work is for, if any
            triggered_by: 'scheduler', 'cli', 'user' or 'system'
            input_params: Arguments worth keeping with the run
            metadata: Additional context

        Yields:
            run_id of the ServiceRun record

        Exceptions are recorded on the run and re-raised.
        """
        label = f"[{self.service_name}.{method_name}]"
        run_id = self.service_run_repo.create_run(
            service_name=self.service_name,
            method_name=method_name,
            user_id=str(user_id) if user_id else None,
            triggered_by=triggered_by,
            input_params=input_params,
            context_metadata=metadata,
        )
        started = time.monotonic()
        logger.info(f"{label} Starting (triggered by {triggered_by}, run_id: {run_id})")

        try:
            yield run_id
        except Exception as e:
            duration_ms = _elapsed_ms(started)
            self.service_run_repo.fail_run(
                run_id=run_id,
                error_type=type(e).__name__,
                error_message=str(e),
                stack_trace=traceback.format_exc(),
                duration_ms=duration_ms,
            )
            logger.error(f"{label} Failed after {duration_ms}ms: {e}", exc_info=True)
            raise

        duration_ms = _elapsed_ms(started)
        self.service_run_repo.complete_run(run_id=run_id, success=True, duration_ms=duration_ms)
        logger.info(f"{label} Completed ({duration_ms}ms)")

    def set_result_summary(self, run_id: str, summary: Dict[str, Any]):
        """Attach counts such as {"published": 3, "failed": 1} to the run."""
        self.service_run_repo.set_result_summary(run_id, summary)

    def _repositories(self) -> List[BaseRepository]:
        """Repositories held directly or through a collaborating service."""
        repos = []
        for value in vars(self).values():
            if isinstance(value, BaseRepository):
                repos.append(value)
            elif isinstance(value, BaseService):
                repos.extend(value._repositories())
        return repos

    def cleanup_transactions(self):
        """End open read transactions on every repository (called after each worker tick)."""
        for repo in self._repositories():
            repo.end_read_transaction()

    def close(self):
        """Close every repository session held by this service."""
        for repo in self._repositories():
            repo.close()
