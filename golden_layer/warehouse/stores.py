"""
Storage interfaces used by the conformance engine.

Every backend implements these four abstract classes. The engine only ever
talks to the interfaces, so the in-memory and PostgreSQL backends are
interchangeable.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from golden_layer.core.models import (
    ConformedRecord,
    PipelineRun,
    QuarantineRecord,
    QuarantineSummary,
    RawRecord,
    ResolutionStatus,
    RunCounts,
    RunStatus,
    UpsertMode,
    UpsertResult,
)


class RawRecordSource(ABC):
    """Read access to landed raw records."""

    @abstractmethod
    def fetch(
        self,
        stream: str,
        record_type: str | None = None,
        batch_id: str | None = None,
    ) -> list[RawRecord]:
        """
        Fetch raw records in landing order.

        Args:
            stream: Raw stream name
            record_type: Discriminator filter, None for every type
            batch_id: Batch filter, None for every batch
        """

    @abstractmethod
    def land(self, records: list[RawRecord]) -> int:
        """Append raw records. Returns the number landed."""


class ConformedStore(ABC):
    """Conformed records keyed by (entity_type, enterprise_key)."""

    @abstractmethod
    def get(self, entity_type: str, enterprise_key: str) -> ConformedRecord | None:
        pass

    def exists(self, entity_type: str, enterprise_key: str) -> bool:
        return self.get(entity_type, enterprise_key) is not None

    @abstractmethod
    def list_records(self, entity_type: str) -> list[ConformedRecord]:
        """All records of an entity type ordered by enterprise key."""

    @abstractmethod
    def count(self, entity_type: str) -> int:
        pass

    @abstractmethod
    def apply_batch(
        self,
        entity_type: str,
        records: list[ConformedRecord],
        mode: UpsertMode = "MERGE",
    ) -> UpsertResult:
        """
        Apply a batch atomically with change detection.

        Either every row of the batch is applied or none is.

        Args:
            entity_type: Entity type of every record in the batch
            records: Validated records to write
            mode: MERGE upserts; REBUILD deletes the entity's rows first

        Returns:
            UpsertResult with inserted, updated, unchanged and deleted counts

        Raises:
            InvariantViolation: If an enterprise key would be re-bound
            StoreUnavailableError: If the backing store fails
        """


class QuarantineStore(ABC):
    """Append-only quarantine rows with a single resolution transition."""

    @abstractmethod
    def append(self, records: list[QuarantineRecord]) -> list[QuarantineRecord]:
        """Append rows and return them with their assigned quarantine ids."""

    @abstractmethod
    def get(self, quarantine_id: int) -> QuarantineRecord | None:
        pass

    @abstractmethod
    def find(
        self,
        target_entity: str | None = None,
        status: ResolutionStatus | None = None,
        run_id: str | None = None,
    ) -> list[QuarantineRecord]:
        """Rows matching every given filter, ordered by quarantine id."""

    @abstractmethod
    def summary(self) -> list[QuarantineSummary]:
        """Counts grouped by target entity, failed rule and resolution status."""

    @abstractmethod
    def update_resolution(
        self,
        quarantine_id: int,
        status: ResolutionStatus,
        resolved_by: str,
        resolved_at: datetime,
        notes: str | None = None,
    ) -> QuarantineRecord:
        """
        Move a PENDING row to a terminal status.

        Raises:
            QuarantineError: If the row does not exist or is not PENDING
        """


class RunLedgerStore(ABC):
    """Persistence for pipeline runs."""

    @abstractmethod
    def insert(self, run: PipelineRun) -> None:
        pass

    @abstractmethod
    def get(self, run_id: str) -> PipelineRun | None:
        pass

    @abstractmethod
    def seal(
        self,
        run_id: str,
        status: RunStatus,
        counts: RunCounts,
        error: str | None,
        end_time: datetime,
    ) -> PipelineRun:
        """
        Seal a RUNNING run exactly once.

        Raises:
            RunLedgerError: If the run does not exist or is already sealed
        """

    @abstractmethod
    def recent(self, limit: int = 50) -> list[PipelineRun]:
        """Most recently started runs first."""

    @abstractmethod
    def running(self) -> list[PipelineRun]:
        """Runs that have not been sealed, oldest first."""
