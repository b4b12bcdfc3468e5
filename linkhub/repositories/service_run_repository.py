"""Service run repository - execution records written by BaseService.track_execution."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from linkhub.models.service_run import ServiceRun
from linkhub.repositories.base_repository import BaseRepository


class ServiceRunRepository(BaseRepository):
    """Start, finish and look up worker / CLI / API service runs."""

    def get_by_id(self, run_id: str) -> Optional[ServiceRun]:
        return self.db.query(ServiceRun).filter(ServiceRun.id == self._to_uuid(run_id)).first()

    def create_run(
        self,
        service_name: str,
        method_name: str,
        user_id: Optional[str] = None,
        triggered_by: str = "system",
        input_params: Optional[Dict[str, Any]] = None,
        context_metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Insert a 'running' record. Returns run_id as a string."""
        run = ServiceRun(
            service_name=service_name,
            method_name=method_name,
            user_id=self._to_uuid(user_id),
            triggered_by=triggered_by,
            input_params=input_params,
            context_metadata=context_metadata,
        )
        self.db.add(run)
        self.commit()
        return str(run.id)

    def _update(self, run_id: str, **fields) -> None:
        run = self.get_by_id(run_id)
        if run is None:
            return
        for name, value in fields.items():
            setattr(run, name, value)
        self.commit()

    def complete_run(self, run_id: str, success: bool, duration_ms: int):
        """Mark a run completed. A summary set during the run is kept."""
        self._update(
            run_id,
            status="completed",
            success=success,
            completed_at=datetime.utcnow(),
            duration_ms=duration_ms,
        )

    def fail_run(
        self,
        run_id: str,
        error_type: str,
        error_message: str,
        stack_trace: str,
        duration_ms: int,
    ):
        self._update(
            run_id,
            status="failed",
            success=False,
            completed_at=datetime.utcnow(),
            duration_ms=duration_ms,
            error_type=error_type,
            error_message=error_message,
            stack_trace=stack_trace,
        )

    def set_result_summary(self, run_id: str, summary: Dict[str, Any]):
        self._update(run_id, result_summary=summary)

    def get_recent_runs(self, service_name: Optional[str] = None, limit: int = 20) -> List[ServiceRun]:
        """Newest runs first, optionally for one service (e.g. 'PublisherService')."""
        query = self.db.query(ServiceRun)
        if service_name:
            query = query.filter(ServiceRun.service_name == service_name)
        return query.order_by(ServiceRun.started_at.desc()).limit(limit).all()
