"""
Catalog - Base Service
======================
Bazowa klasa serwisu z walidacją, eventami i correlation id.
Wszystkie serwisy dziedziczą po tej klasie.
"""

from abc import ABC
from typing import Any, Dict, List, Optional
from contextlib import contextmanager
import uuid
import logging

from core.events import EventBus, EventType, create_event
from core.exceptions import (
    RequiredFieldError,
    InvalidFieldValueError,
)

logger = logging.getLogger(__name__)


class BaseService(ABC):
    """
    Bazowa klasa serwisu.

    Zapewnia:
    - Walidację danych (pola wymagane / dozwolone / typy)
    - Emitowanie eventów
    - Correlation id (grupowanie operacji jednego żądania)

    Usage:
        class ProductService(BaseService):
            ENTITY_NAME = "Product"
            REQUIRED_FIELDS = ["name", "slug"]
            OPTIONAL_FIELDS = ["description"]
    """

    # Subklasy powinny zdefiniować
    ENTITY_NAME: str = None

    # Pola do walidacji
    REQUIRED_FIELDS: List[str] = []
    OPTIONAL_FIELDS: List[str] = []

    # Mapowanie pól na typy (do walidacji)
    FIELD_TYPES: Dict[str, type] = {}

    # Mapowanie eventów
    EVENT_CREATE: EventType = None
    EVENT_UPDATE: EventType = None
    EVENT_DELETE: EventType = None

    def __init__(self, event_bus: EventBus = None):
        self.event_bus = event_bus or EventBus()

        # Correlation ID dla grupowania operacji
        self._correlation_id: Optional[str] = None

    # ============================================================
    # Correlation (Request Grouping)
    # ============================================================

    def start_correlation(self, correlation_id: str = None) -> str:
        """
        Rozpocznij grupę operacji (jedno żądanie).
        Wszystkie eventy będą miały ten sam correlation_id.
        """
        self._correlation_id = correlation_id or str(uuid.uuid4())
        return self._correlation_id

    def end_correlation(self):
        """Zakończ grupę operacji"""
        self._correlation_id = None

    @contextmanager
    def correlation_context(self, correlation_id: str = None):
        """Context manager dla grupy operacji"""
        cid = self.start_correlation(correlation_id)
        try:
            yield cid
        finally:
            self.end_correlation()

    # ============================================================
    # Validation
    # ============================================================

    def validate(self, data: Dict[str, Any], is_update: bool = False) -> Dict[str, Any]:
        """
        Waliduj dane wejściowe.

        Args:
            data: Dane do walidacji
            is_update: True jeśli aktualizacja (nie wymaga wszystkich pól)

        Returns:
            Zwalidowane dane (mogą być zmodyfikowane)

        Raises:
            RequiredFieldError: Brak wymaganego pola
            InvalidFieldValueError: Nieprawidłowa wartość
        """
        validated = {}

        # Sprawdź wymagane pola
        if not is_update:
            for field in self.REQUIRED_FIELDS:
                value = data.get(field)
                if value is None or (isinstance(value, str) and not value.strip()):
                    raise RequiredFieldError(field, self.ENTITY_NAME)

        allowed_fields = set(self.REQUIRED_FIELDS) | set(self.OPTIONAL_FIELDS)

        for field, value in data.items():
            if field not in allowed_fields:
                logger.warning(f"[{self.ENTITY_NAME}] Ignoring unknown field: {field}")
                continue

            if field in self.FIELD_TYPES and value is not None:
                expected_type = self.FIELD_TYPES[field]
                if not isinstance(value, expected_type):
                    try:
                        value = expected_type(value)
                    except (ValueError, TypeError):
                        raise InvalidFieldValueError(
                            field, value,
                            f"Expected {expected_type.__name__}"
                        )

            validated[field] = value

        # Wywołaj custom walidację (do nadpisania w subklasach)
        self._validate_business_rules(validated, is_update)

        return validated

    def _validate_business_rules(self, data: Dict[str, Any], is_update: bool):
        """
        Hook do walidacji reguł biznesowych.
        Subklasy mogą nadpisać.

        Raises:
            ValidationError: Jeśli reguła naruszona
        """
        pass

    # ============================================================
    # Events
    # ============================================================

    def emit_event(self, event_type: EventType, data: Dict[str, Any]):
        """Wyemituj event"""
        event = create_event(
            event_type=event_type,
            data=data,
            source=self.ENTITY_NAME,
            correlation_id=self._correlation_id,
        )
        self.event_bus.publish(event)

    def emit_create_event(self, entity_id: str, data: Dict[str, Any]):
        """Wyemituj event utworzenia"""
        if self.EVENT_CREATE:
            self.emit_event(self.EVENT_CREATE, {"id": entity_id, **data})

    def emit_update_event(
        self,
        entity_id: str,
        old_data: Dict[str, Any],
        new_data: Dict[str, Any]
    ):
        """Wyemituj event aktualizacji"""
        if self.EVENT_UPDATE:
            self.emit_event(self.EVENT_UPDATE, {
                "id": entity_id,
                "old": old_data,
                "new": new_data
            })

    def emit_delete_event(self, entity_id: str, data: Dict[str, Any]):
        """Wyemituj event usunięcia"""
        if self.EVENT_DELETE:
            self.emit_event(self.EVENT_DELETE, {"id": entity_id, **data})
