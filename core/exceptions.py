"""
Catalog - Własne wyjątki
========================
Hierarchia wyjątków dla całego systemu.

Rodzaje błędów widoczne dla wywołującego:
    ValidationError   - zły kształt danych, brak pola, zła wartość
    NotFoundError     - brak rekordu (lub rekord nieaktywny)
    ConflictError     - duplikat klucza unikalnego, konflikt wersji
    UploadError       - błąd put/delete w Storage
    PersistenceError  - błąd zapisu w bazie (inny niż walidacja)
"""


class CatalogError(Exception):
    """Bazowy wyjątek dla wszystkich błędów katalogu"""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"[{self.code}] {self.message} | Details: {self.details}"
        return f"[{self.code}] {self.message}"


# ============================================================
# Validation Errors
# ============================================================

class ValidationError(CatalogError):
    """Błędy walidacji danych"""
    pass


class RequiredFieldError(ValidationError):
    """Brak wymaganego pola"""

    def __init__(self, field: str, entity_type: str = None):
        msg = f"Field '{field}' is required"
        if entity_type:
            msg = f"{entity_type}: {msg}"
        super().__init__(msg, code="REQUIRED_FIELD", details={"field": field})


class InvalidFieldValueError(ValidationError):
    """Nieprawidłowa wartość pola"""

    def __init__(self, field: str, value, reason: str = None):
        msg = f"Invalid value for field '{field}': {value}"
        if reason:
            msg += f" - {reason}"
        super().__init__(
            msg,
            code="INVALID_FIELD_VALUE",
            details={"field": field, "value": str(value), "reason": reason}
        )


class BusinessRuleError(ValidationError):
    """Naruszenie reguły biznesowej"""

    def __init__(self, rule: str, details: dict = None):
        super().__init__(
            rule,
            code="BUSINESS_RULE_ERROR",
            details=details or {}
        )


class FileTooLargeError(ValidationError):
    """Plik jest za duży"""

    def __init__(self, filename: str, size_mb: float, max_size_mb: float):
        super().__init__(
            f"File '{filename}' is too large ({size_mb:.1f} MB). Maximum: {max_size_mb:.1f} MB",
            code="FILE_TOO_LARGE",
            details={
                "filename": filename,
                "size_mb": size_mb,
                "max_size_mb": max_size_mb
            }
        )


class InvalidFileTypeError(ValidationError):
    """Nieprawidłowy typ pliku"""

    def __init__(self, filename: str, allowed_types: list):
        super().__init__(
            f"Invalid file type: '{filename}'. Allowed: {', '.join(allowed_types)}",
            code="INVALID_FILE_TYPE",
            details={"filename": filename, "allowed_types": allowed_types}
        )


# ============================================================
# Not Found Errors
# ============================================================

class NotFoundError(CatalogError):
    """Rekord nie istnieje lub jest nieaktywny"""
    pass


class RecordNotFoundError(NotFoundError):
    """Rekord nie został znaleziony"""

    def __init__(self, entity_type: str, entity_id: str, active_only: bool = False):
        prefix = f"Active {entity_type}" if active_only else entity_type
        super().__init__(
            f"{prefix} with id '{entity_id}' not found",
            code="RECORD_NOT_FOUND",
            details={"entity_type": entity_type, "entity_id": entity_id}
        )


# ============================================================
# Conflict Errors
# ============================================================

class ConflictError(CatalogError):
    """Konflikt z istniejącym stanem bazy"""
    pass


class DuplicateRecordError(ConflictError):
    """Próba utworzenia duplikatu (unique constraint)"""

    def __init__(self, entity_type: str, field: str, value: str):
        super().__init__(
            f"{entity_type} with this {field} already exists",
            code="DUPLICATE_RECORD",
            details={"entity_type": entity_type, "field": field, "value": value}
        )


class OptimisticLockError(ConflictError):
    """Konflikt wersji przy aktualizacji (optimistic locking)"""

    def __init__(self, entity_type: str, entity_id: str, expected_version: int):
        super().__init__(
            f"{entity_type} '{entity_id}' was modified by another user. "
            f"Expected version {expected_version}.",
            code="OPTIMISTIC_LOCK_ERROR",
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "expected_version": expected_version
            }
        )


# ============================================================
# Storage Errors
# ============================================================

class StorageError(CatalogError):
    """Błędy związane z Supabase Storage"""
    pass


class UploadError(StorageError):
    """Błąd podczas uploadu pliku"""

    def __init__(self, path: str, reason: str = None):
        super().__init__(
            f"Failed to upload file: {path}" + (f" - {reason}" if reason else ""),
            code="UPLOAD_ERROR",
            details={"path": path, "reason": reason}
        )


# ============================================================
# Persistence Errors
# ============================================================

class PersistenceError(CatalogError):
    """Błąd zapisu/odczytu bazy danych"""
    pass


# ============================================================
# Workflow Errors
# ============================================================

class WorkflowError(CatalogError):
    """Błędy związane z workflow/state machine"""
    pass


class InvalidStateTransitionError(WorkflowError):
    """Nieprawidłowe przejście między stanami"""

    def __init__(self, entity_type: str, current_state: str, target_state: str):
        super().__init__(
            f"Cannot transition {entity_type} from '{current_state}' to '{target_state}'",
            code="INVALID_STATE_TRANSITION",
            details={
                "entity_type": entity_type,
                "current_state": current_state,
                "target_state": target_state
            }
        )
