"""
Catalog - Base Repository
=========================
Bazowa klasa repozytorium z CRUD, soft delete, optimistic locking.
Wszystkie repozytoria dziedziczą po tej klasie.

Każdy create/update to JEDNO wywołanie PostgREST - zapis jest atomowy
(albo cały rekord, albo nic).
"""

from abc import ABC
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import logging

from supabase import Client

from core.exceptions import (
    RecordNotFoundError,
    DuplicateRecordError,
    OptimisticLockError,
    PersistenceError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class BaseRepository(ABC):
    """
    Bazowa klasa repozytorium.

    Zapewnia:
    - CRUD operations
    - Soft delete (is_active + deleted_at)
    - Optimistic locking (version)
    - Mapowanie błędów Postgres na wyjątki domenowe

    Usage:
        class ProductRepository(BaseRepository):
            TABLE_NAME = "products"
            ENTITY_NAME = "Product"
            UNIQUE_FIELDS = ["name", "slug"]
    """

    # Subklasy muszą zdefiniować
    TABLE_NAME: str = None
    ENTITY_NAME: str = None

    # Pola z unique constraint
    UNIQUE_FIELDS: List[str] = []

    # Domyślne kolumny
    ID_COLUMN = "id"
    VERSION_COLUMN = "version"
    IS_ACTIVE_COLUMN = "is_active"
    DELETED_AT_COLUMN = "deleted_at"
    CREATED_AT_COLUMN = "created_at"
    UPDATED_AT_COLUMN = "updated_at"

    def __init__(self, client: Client):
        self.client = client

        if not self.TABLE_NAME:
            raise ValueError(f"{self.__class__.__name__} must define TABLE_NAME")
        if not self.ENTITY_NAME:
            self.ENTITY_NAME = self.TABLE_NAME

    # ============================================================
    # Core CRUD Operations
    # ============================================================

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Utwórz nowy rekord.

        Args:
            data: Dane do zapisania (bez id, created_at, itp.)

        Returns:
            Utworzony rekord z id

        Raises:
            DuplicateRecordError: Jeśli narusza unique constraint
            PersistenceError: Inne błędy bazy
        """
        data.setdefault(self.IS_ACTIVE_COLUMN, True)
        data.setdefault(self.VERSION_COLUMN, 1)

        try:
            response = self.client.table(self.TABLE_NAME)\
                .insert(data)\
                .execute()
        except Exception as e:
            raise self._translate_error(e, data, "create")

        if response.data:
            record = response.data[0]
            logger.info(f"[{self.ENTITY_NAME}] Created: {record.get(self.ID_COLUMN)}")
            return record

        raise PersistenceError(f"Failed to create {self.ENTITY_NAME}")

    def get_by_id(
        self,
        id: str,
        include_deleted: bool = False
    ) -> Optional[Dict[str, Any]]:
        """
        Pobierz rekord po ID.

        Args:
            id: ID rekordu
            include_deleted: Czy włączyć nieaktywne (soft-deleted)

        Returns:
            Rekord lub None jeśli nie znaleziono
        """
        try:
            query = self.client.table(self.TABLE_NAME)\
                .select('*')\
                .eq(self.ID_COLUMN, id)

            if not include_deleted:
                query = query.eq(self.IS_ACTIVE_COLUMN, True)

            response = query.limit(1).execute()
        except Exception as e:
            logger.error(f"[{self.ENTITY_NAME}] Get by ID failed: {e}")
            raise PersistenceError(f"Failed to read {self.ENTITY_NAME} '{id}': {e}")

        return response.data[0] if response.data else None

    def get_by_id_or_raise(
        self,
        id: str,
        include_deleted: bool = False
    ) -> Dict[str, Any]:
        """
        Pobierz rekord po ID lub rzuć wyjątek.

        Raises:
            RecordNotFoundError: Jeśli nie znaleziono
        """
        record = self.get_by_id(id, include_deleted)
        if not record:
            raise RecordNotFoundError(self.ENTITY_NAME, id, active_only=not include_deleted)
        return record

    def update(
        self,
        id: str,
        data: Dict[str, Any],
        expected_version: int = None
    ) -> Dict[str, Any]:
        """
        Aktualizuj rekord.

        Bez expected_version obowiązuje "last write wins". Z expected_version
        UPDATE jest warunkowy (WHERE version = expected_version), więc
        porównanie wersji i zapis są jednym atomowym krokiem.

        Args:
            id: ID rekordu
            data: Dane do aktualizacji
            expected_version: Oczekiwana wersja (optimistic locking)

        Returns:
            Zaktualizowany rekord

        Raises:
            RecordNotFoundError: Jeśli nie znaleziono
            OptimisticLockError: Jeśli wersja się nie zgadza
            DuplicateRecordError: Jeśli narusza unique constraint
            PersistenceError: Inne błędy bazy
        """
        current = self.get_by_id_or_raise(id, include_deleted=True)
        current_version = current.get(self.VERSION_COLUMN, 1)

        if expected_version is not None and current_version != expected_version:
            raise OptimisticLockError(self.ENTITY_NAME, id, expected_version)

        data = dict(data)
        data[self.UPDATED_AT_COLUMN] = datetime.now().isoformat()
        data[self.VERSION_COLUMN] = current_version + 1

        # Usuń pola których nie można aktualizować
        data.pop(self.ID_COLUMN, None)
        data.pop(self.CREATED_AT_COLUMN, None)

        try:
            query = self.client.table(self.TABLE_NAME)\
                .update(data)\
                .eq(self.ID_COLUMN, id)

            if expected_version is not None:
                query = query.eq(self.VERSION_COLUMN, expected_version)

            response = query.execute()
        except Exception as e:
            raise self._translate_error(e, data, "update")

        if response.data:
            logger.info(f"[{self.ENTITY_NAME}] Updated: {id}")
            return response.data[0]

        if expected_version is not None:
            raise OptimisticLockError(self.ENTITY_NAME, id, expected_version)

        raise PersistenceError(f"Failed to update {self.ENTITY_NAME} '{id}'")

    def delete(self, id: str, hard: bool = False) -> bool:
        """
        Usuń rekord (domyślnie soft delete).

        Args:
            id: ID rekordu
            hard: True = fizyczne usunięcie, False = soft delete

        Returns:
            True jeśli usunięto

        Raises:
            RecordNotFoundError: Jeśli nie znaleziono
        """
        self.get_by_id_or_raise(id, include_deleted=True)

        try:
            if hard:
                self.client.table(self.TABLE_NAME)\
                    .delete()\
                    .eq(self.ID_COLUMN, id)\
                    .execute()
                logger.info(f"[{self.ENTITY_NAME}] Hard deleted: {id}")
            else:
                now = datetime.now().isoformat()
                self.client.table(self.TABLE_NAME)\
                    .update({
                        self.IS_ACTIVE_COLUMN: False,
                        self.DELETED_AT_COLUMN: now,
                        self.UPDATED_AT_COLUMN: now
                    })\
                    .eq(self.ID_COLUMN, id)\
                    .execute()
                logger.info(f"[{self.ENTITY_NAME}] Soft deleted: {id}")
        except Exception as e:
            logger.error(f"[{self.ENTITY_NAME}] Delete failed: {e}")
            raise PersistenceError(f"Failed to delete {self.ENTITY_NAME}: {e}")

        return True

    def restore(self, id: str) -> Dict[str, Any]:
        """
        Przywróć soft-deleted rekord.

        Returns:
            Przywrócony rekord
        """
        record = self.get_by_id_or_raise(id, include_deleted=True)

        if record.get(self.IS_ACTIVE_COLUMN):
            return record  # Już aktywny

        return self.set_active(id, True)

    def set_active(self, id: str, active: bool) -> Dict[str, Any]:
        """
        Ustaw flagę is_active (aktywacja / dezaktywacja).

        Returns:
            Zaktualizowany rekord
        """
        now = datetime.now().isoformat()
        try:
            response = self.client.table(self.TABLE_NAME)\
                .update({
                    self.IS_ACTIVE_COLUMN: active,
                    self.DELETED_AT_COLUMN: None if active else now,
                    self.UPDATED_AT_COLUMN: now
                })\
                .eq(self.ID_COLUMN, id)\
                .execute()
        except Exception as e:
            logger.error(f"[{self.ENTITY_NAME}] Set active failed: {e}")
            raise PersistenceError(f"Failed to change {self.ENTITY_NAME} state: {e}")

        if not response.data:
            raise RecordNotFoundError(self.ENTITY_NAME, id)

        logger.info(f"[{self.ENTITY_NAME}] {'Activated' if active else 'Deactivated'}: {id}")
        return response.data[0]

    # ============================================================
    # Query Methods
    # ============================================================

    def find_one(self, include_deleted: bool = True, **kwargs) -> Optional[Dict[str, Any]]:
        """
        Znajdź jeden rekord po polach (równość).

        Usage:
            product = repo.find_one(slug="wspornik-a")
        """
        try:
            query = self.client.table(self.TABLE_NAME).select('*')
            for field, value in kwargs.items():
                query = query.eq(field, value)
            if not include_deleted:
                query = query.eq(self.IS_ACTIVE_COLUMN, True)
            response = query.limit(1).execute()
        except Exception as e:
            logger.error(f"[{self.ENTITY_NAME}] Find one failed: {e}")
            raise PersistenceError(f"Failed to query {self.ENTITY_NAME}: {e}")

        return response.data[0] if response.data else None

    def list_page(
        self,
        page: int = 1,
        limit: int = 10,
        include_deleted: bool = False
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Pobierz stronę rekordów.

        Returns:
            Tuple[List[dict], int]: (rekordy, total_count)
        """
        offset = (page - 1) * limit
        try:
            query = self.client.table(self.TABLE_NAME)\
                .select('*', count='exact')

            if not include_deleted:
                query = query.eq(self.IS_ACTIVE_COLUMN, True)

            response = query\
                .order(self.CREATED_AT_COLUMN, desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
        except Exception as e:
            logger.error(f"[{self.ENTITY_NAME}] List failed: {e}")
            raise PersistenceError(f"Failed to list {self.ENTITY_NAME}: {e}")

        records = response.data or []
        total = response.count if response.count is not None else len(records)
        return records, total

    # ============================================================
    # Error mapping
    # ============================================================

    def _translate_error(self, error: Exception, data: Dict[str, Any], action: str) -> Exception:
        """
        Zamień błąd PostgREST na wyjątek domenowy.

        23505 = unique_violation, 23502 = not_null_violation,
        23514 = check_violation (walidacja po stronie bazy).
        """
        error_msg = str(error)
        error_code = str(getattr(error, 'code', '') or '')

        if error_code == '23505' or "duplicate key" in error_msg or "unique constraint" in error_msg.lower():
            for field in self.UNIQUE_FIELDS:
                if f"({field})" in error_msg or f"_{field}_" in error_msg:
                    return DuplicateRecordError(
                        self.ENTITY_NAME,
                        field,
                        str(data.get(field, ''))
                    )
            return DuplicateRecordError(self.ENTITY_NAME, "unknown", "")

        if error_code in ('23502', '23514'):
            return ValidationError(
                f"{self.ENTITY_NAME} rejected by database: {error_msg}",
                code="DB_VALIDATION",
                details={"pg_code": error_code}
            )

        logger.error(f"[{self.ENTITY_NAME}] {action.capitalize()} failed: {error}")
        return PersistenceError(f"Failed to {action} {self.ENTITY_NAME}: {error}")
