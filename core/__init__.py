#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Catalog Core Module
===================
Wspólne komponenty dla wszystkich modułów.

Klient Supabase importuj bezpośrednio z core.supabase_client
(wymaga konfiguracji).
"""

# Exceptions
from core.exceptions import (
    CatalogError,
    ValidationError,
    RequiredFieldError,
    InvalidFieldValueError,
    BusinessRuleError,
    FileTooLargeError,
    InvalidFileTypeError,
    NotFoundError,
    RecordNotFoundError,
    ConflictError,
    DuplicateRecordError,
    OptimisticLockError,
    StorageError,
    UploadError,
    PersistenceError,
    WorkflowError,
    InvalidStateTransitionError,
)

# Events
from core.events import (
    EventType,
    Event,
    EventBus,
    EventHandler,
    create_event,
    get_event_bus,
    setup_event_logging,
)

# Base classes
from core.base_repository import BaseRepository
from core.base_service import BaseService


__all__ = [
    # Exceptions
    'CatalogError',
    'ValidationError',
    'RequiredFieldError',
    'InvalidFieldValueError',
    'BusinessRuleError',
    'FileTooLargeError',
    'InvalidFileTypeError',
    'NotFoundError',
    'RecordNotFoundError',
    'ConflictError',
    'DuplicateRecordError',
    'OptimisticLockError',
    'StorageError',
    'UploadError',
    'PersistenceError',
    'WorkflowError',
    'InvalidStateTransitionError',

    # Events
    'EventType',
    'Event',
    'EventBus',
    'EventHandler',
    'create_event',
    'get_event_bus',
    'setup_event_logging',

    # Base classes
    'BaseRepository',
    'BaseService',
]
