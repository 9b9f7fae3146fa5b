"""
Catalog - Compensating Write Coordinator
========================================
Zapis produktu z zasobami w Storage jako maszyna stanów:

    UPLOADING → VALIDATING → PERSISTING → CLEANING_UP → DONE
         ↘           ↘            ↘
                    FAILED

Zasady:
- Rekord jest zapisywany dopiero gdy WSZYSTKIE nowe zasoby są w Storage
- Błąd przed zakończeniem PERSISTING (także przerwanie żądania) → usunięcie
  zasobów wysłanych w tym żądaniu, potem błąd do wywołującego
- Stare zasoby usuwane są dopiero po udanym zapisie (CLEANING_UP);
  błąd sprzątania jest logowany i nie cofa zapisu
- Zasób, którego nie udało się usunąć → event product.asset_orphaned
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Set
import logging

from core.events import EventBus, EventType, create_event
from core.exceptions import (
    CatalogError,
    UploadError,
    PersistenceError,
    InvalidStateTransitionError,
)
from products.assets import AssetFile, UploadOutcome
from products.upload_batch import AssetUploadBatch

logger = logging.getLogger(__name__)


class WriteStage(Enum):
    """Etapy zapisu"""
    UPLOADING = "uploading"
    VALIDATING = "validating"
    PERSISTING = "persisting"
    CLEANING_UP = "cleaning_up"
    DONE = "done"
    FAILED = "failed"


# Dozwolone przejścia między etapami
STAGE_TRANSITIONS = {
    WriteStage.UPLOADING: [WriteStage.VALIDATING, WriteStage.FAILED],
    WriteStage.VALIDATING: [WriteStage.PERSISTING, WriteStage.FAILED],
    WriteStage.PERSISTING: [WriteStage.CLEANING_UP, WriteStage.FAILED],
    WriteStage.CLEANING_UP: [WriteStage.DONE],
    WriteStage.DONE: [],
    WriteStage.FAILED: [],
}


@dataclass
class WritePlan:
    """
    Wynik etapu VALIDATING.

    Attributes:
        fields: Dane rekordu do zapisania jednym wywołaniem
        orphan_urls: Zasoby do usunięcia po udanym zapisie
    """
    fields: Dict[str, Any]
    orphan_urls: Set[str] = field(default_factory=set)


@dataclass
class WriteContext:
    """
    Stan jednego żądania zapisu.

    uploaded to akumulator wyników uploadu z tego żądania - jedyne
    zasoby, które wolno usunąć przy rollbacku.
    """
    stage: WriteStage = WriteStage.UPLOADING
    uploaded: List[UploadOutcome] = field(default_factory=list)
    orphan_urls: Set[str] = field(default_factory=set)
    failed_stage: Optional[WriteStage] = None
    undeleted_urls: List[str] = field(default_factory=list)

    def advance(self, target: WriteStage):
        """Przejdź do kolejnego etapu"""
        if target not in STAGE_TRANSITIONS.get(self.stage, []):
            raise InvalidStateTransitionError("ProductWrite", self.stage.value, target.value)
        logger.debug(f"[WRITE] {self.stage.value} → {target.value}")
        self.stage = target

    def fail(self):
        """Oznacz żądanie jako nieudane (zapamiętuje etap błędu)"""
        if self.stage in (WriteStage.DONE, WriteStage.FAILED):
            return
        self.failed_stage = self.stage
        self.stage = WriteStage.FAILED


class CompensatingWriteCoordinator:
    """
    Koordynator zapisu z kompensacją.

    Usage:
        coordinator = CompensatingWriteCoordinator(storage)
        record = coordinator.execute(
            uploads=[AssetFile(...), ...],
            build=lambda outcomes: WritePlan(fields={...}, orphan_urls={...}),
            persist=lambda fields: repository.create(fields),
        )
    """

    def __init__(self, store, bucket: str = None, event_bus: EventBus = None):
        self.store = store
        self.bucket = bucket or getattr(store, 'bucket', None)
        self.event_bus = event_bus or EventBus()

    def execute(
        self,
        uploads: Sequence[AssetFile],
        build: Callable[[List[UploadOutcome]], WritePlan],
        persist: Callable[[Dict[str, Any]], Dict[str, Any]],
        context: WriteContext = None,
        correlation_id: str = None
    ) -> Dict[str, Any]:
        """
        Wykonaj zapis.

        Args:
            uploads: Nowe pliki do wysłania (mogą być puste)
            build: Walidacja domenowa + budowa danych rekordu na podstawie
                   wyników uploadu (etap VALIDATING)
            persist: Jedno atomowe wywołanie create/update (etap PERSISTING)
            context: Opcjonalny stan żądania (nowy jeśli None)
            correlation_id: ID żądania dla eventów

        Returns:
            Zapisany rekord

        Raises:
            CatalogError: Błąd z details['stage'] = etap, na którym wystąpił
        """
        ctx = context or WriteContext()
        batch = AssetUploadBatch(self.store, self.bucket)

        try:
            _, error = batch.upload_all(uploads, into=ctx.uploaded)
            if error:
                raise error

            ctx.advance(WriteStage.VALIDATING)
            plan = build(list(ctx.uploaded))

            ctx.advance(WriteStage.PERSISTING)
            record = persist(plan.fields)

        except BaseException as e:
            ctx.fail()
            stage = ctx.failed_stage or ctx.stage
            logger.warning(f"[WRITE] Failed at {stage.value}: {e}")

            self._rollback(ctx, correlation_id)

            if isinstance(e, CatalogError):
                e.details.setdefault("stage", stage.value)
                raise

            if not isinstance(e, Exception):
                # Przerwanie (KeyboardInterrupt, anulowanie) - po rollbacku dalej
                raise

            raise self._wrap_error(e, stage) from e

        ctx.advance(WriteStage.CLEANING_UP)
        ctx.orphan_urls = set(plan.orphan_urls)
        self._cleanup(ctx, correlation_id)

        ctx.advance(WriteStage.DONE)
        return record

    # ============================================================
    # Compensation
    # ============================================================

    def _rollback(self, ctx: WriteContext, correlation_id: str = None):
        """Usuń zasoby wysłane w tym żądaniu (best effort)"""
        if not ctx.uploaded:
            return

        logger.info(f"[WRITE] Rolling back {len(ctx.uploaded)} uploaded file(s)")

        for outcome in ctx.uploaded:
            if not self._delete(outcome.url, outcome.bucket or self.bucket):
                ctx.undeleted_urls.append(outcome.url)
                self._report_orphan(outcome.url, outcome.bucket, "rollback", ctx, correlation_id)

    def _cleanup(self, ctx: WriteContext, correlation_id: str = None):
        """Usuń zasoby, do których zapisany rekord już się nie odwołuje"""
        for url in sorted(ctx.orphan_urls):
            if not self._delete(url, self.bucket):
                ctx.undeleted_urls.append(url)
                self._report_orphan(url, self.bucket, "cleanup", ctx, correlation_id)

    def _delete(self, url: str, bucket: str) -> bool:
        try:
            return bool(self.store.delete(url, bucket))
        except Exception as e:
            logger.error(f"[WRITE] Delete raised for {url}: {e}")
            return False

    def _report_orphan(
        self,
        url: str,
        bucket: str,
        phase: str,
        ctx: WriteContext,
        correlation_id: str = None
    ):
        logger.error(f"[WRITE] Could not delete {url} during {phase}, asset orphaned")
        self.event_bus.publish(create_event(
            EventType.PRODUCT_ASSET_ORPHANED,
            {
                "url": url,
                "bucket": bucket or self.bucket,
                "phase": phase,
                "stage": (ctx.failed_stage or ctx.stage).value,
            },
            source="ProductWrite",
            correlation_id=correlation_id,
        ))

    @staticmethod
    def _wrap_error(error: Exception, stage: WriteStage) -> CatalogError:
        """Zamień nieoczekiwany wyjątek na błąd domenowy z etapem"""
        if stage == WriteStage.UPLOADING:
            wrapped = UploadError("batch", str(error))
        else:
            wrapped = PersistenceError(
                f"Product write failed during {stage.value}: {error}"
            )
        wrapped.details["stage"] = stage.value
        return wrapped
