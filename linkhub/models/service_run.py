"""Service run model - tracks all service executions."""

from sqlalchemy import Column, String, Integer, DateTime, Text, Boolean, CheckConstraint, JSON, Uuid
from datetime import datetime
import uuid

from linkhub.config.database import Base


class ServiceRun(Base):
    """
    Service run model.

    Tracks every tracked service execution for observability and debugging.
    """

    __tablename__ = "service_runs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Service identification
    service_name = Column(String(100), nullable=False, index=True)  # 'PublisherService'
    method_name = Column(String(100), nullable=False)  # 'process_queue'

    # Execution context
    user_id = Column(Uuid)  # Who triggered it (NULL for automated)
    triggered_by = Column(String(50), default="system")  # 'user', 'system', 'scheduler', 'cli'

    # Timing
    started_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    completed_at = Column(DateTime)
    duration_ms = Column(Integer)

    # Status
    status = Column(String(50), nullable=False, default="running", index=True)
    success = Column(Boolean)

    # Results
    result_summary = Column(JSON)  # {published: 3, failed: 1}
    error_message = Column(Text)
    error_type = Column(String(100))
    stack_trace = Column(Text)

    # Metadata
    input_params = Column(JSON)
    context_metadata = Column(JSON)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(
            "status IN ('running', 'completed', 'failed')",
            name="check_service_run_status",
        ),
    )

    def __repr__(self):
        return f"<ServiceRun {self.service_name}.{self.method_name} ({self.status})>"
