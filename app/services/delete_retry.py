"""Delete Retry Controller — bounded retry around StudentCoordinator.delete_student.

Invariants:
    - At most max_attempts calls to the coordinator (default 3), never one more
    - Fixed delay between attempts, none after the last
    - ValidationError / NotFoundError are terminal: raised on the attempt that saw them
    - Aborted transactions (TransientWriteError, DatabaseError) are retried;
      exhausting the bound raises InternalError

Design Decisions:
    - Fixed delay over exponential backoff: write conflicts on one student clear quickly and
      the request is user-facing
    - Only deletion retries; create/update surface the first failure unchanged
"""

import asyncio
import logging
from uuid import UUID

from app.core.domain_types import DeletionResult
from app.core.errors import DatabaseError, ErrorContext, InternalError
from app.services.student_coordinator import StudentCoordinator

logger = logging.getLogger(__name__)


class DeleteRetryController:
    """Retries whole deletion attempts on transient transaction failure."""

    MAX_ATTEMPTS = 3
    RETRY_DELAY_MS = 200

    def __init__(
        self,
        coordinator: StudentCoordinator,
        max_attempts: int = MAX_ATTEMPTS,
        delay_ms: int = RETRY_DELAY_MS,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._coordinator = coordinator
        self.max_attempts = max_attempts
        self.delay_ms = delay_ms

    async def delete_student(self, student_id: str | UUID) -> DeletionResult:
        last_error: DatabaseError | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await self._coordinator.delete_student(student_id)
            except DatabaseError as e:
                last_error = e
                logger.warning(
                    f"Student deletion attempt {attempt}/{self.max_attempts} failed: {e.message}",
                    extra={
                        "student_id": str(student_id),
                        "attempt": attempt,
                        "error_code": e.code,
                    },
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.delay_ms / 1000)

        raise InternalError(
            f"Student deletion failed after {self.max_attempts} attempts",
            ErrorContext(
                student_id=str(student_id),
                debug_info={"last_error": last_error.message if last_error else None},
            ),
        )
