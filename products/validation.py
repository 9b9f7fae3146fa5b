"""
Walidacja pól produktu i plików zasobów.

Wszystkie funkcje rzucają wyjątki z core.exceptions (ValidationError i pochodne).
"""

import json
import re
import uuid
from pathlib import Path
from typing import Any, List, Optional

from config.settings import (
    ALLOWED_IMAGES,
    ALLOWED_DOCS,
    MAX_FILE_SIZE,
    MAX_FILE_SIZE_MB,
    PRODUCT_STATUSES,
    is_allowed_file,
)
from core.exceptions import (
    ValidationError,
    InvalidFieldValueError,
    FileTooLargeError,
    InvalidFileTypeError,
)
from products.assets import AssetFile, AssetRole

NAME_PATTERN = re.compile(r'^[a-zA-Z0-9_ ]+$')
SLUG_PATTERN = re.compile(r'^[a-z0-9-]+$')

# pole: (min, max)
FIELD_LENGTHS = {
    "name": (3, 50),
    "abbreviation": (2, 10),
    "description": (10, 1000),
    "short_description": (5, 200),
    "seo_title": (3, 60),
    "seo_description": (10, 160),
}


def generate_slug(name: str) -> str:
    """'Steel Bracket A' → 'steel-bracket-a'"""
    slug = re.sub(r'[^a-z0-9]+', '-', (name or "").strip().lower())
    return slug.strip('-')


def is_uuid(value: Any) -> bool:
    try:
        uuid.UUID(str(value))
        return True
    except (ValueError, TypeError, AttributeError):
        return False


def to_list(value: Any) -> List[str]:
    """Lista lub string rozdzielany przecinkami → lista niepustych stringów"""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(',')
    elif isinstance(value, (list, tuple, set)):
        items = list(value)
    else:
        items = [value]
    return [str(item).strip() for item in items if item is not None and str(item).strip()]


def parse_json_list(value: Any, field: str) -> list:
    """Lista lub JSON-string z listą → lista"""
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except (ValueError, TypeError):
            raise InvalidFieldValueError(field, value, f"Invalid {field} format")

    if not isinstance(value, list):
        raise InvalidFieldValueError(field, value, f"Invalid {field} format")

    return value


def require_non_empty(items: list, field: str, message: str) -> list:
    if not items:
        raise ValidationError(message, code="EMPTY_LIST", details={"field": field})
    return items


def check_length(field: str, value: Optional[str]) -> str:
    """Sprawdź długość pola tekstowego wg FIELD_LENGTHS (po strip)"""
    text = (value or "").strip()
    min_len, max_len = FIELD_LENGTHS[field]

    if len(text) < min_len:
        raise InvalidFieldValueError(field, value, f"must be at least {min_len} characters")
    if len(text) > max_len:
        raise InvalidFieldValueError(field, value, f"cannot exceed {max_len} characters")

    return text


def check_name(value: str) -> str:
    name = check_length("name", value)
    if not NAME_PATTERN.match(name):
        raise InvalidFieldValueError(
            "name", value,
            "can only contain letters, numbers, underscores, and spaces"
        )
    return name


def check_slug(value: str) -> str:
    slug = (value or "").strip().lower()
    if not slug or not SLUG_PATTERN.match(slug):
        raise InvalidFieldValueError(
            "slug", value,
            "can only contain lowercase letters, numbers, and hyphens"
        )
    return slug


def check_status(value: str) -> str:
    if value not in PRODUCT_STATUSES:
        raise InvalidFieldValueError("status", value, "Invalid status value")
    return value


def check_specifications(value: Any) -> list:
    specs = parse_json_list(value, "technical_specifications")
    require_non_empty(specs, "technical_specifications", "At least one technical specification is required")
    for spec in specs:
        if not isinstance(spec, dict) or not str(spec.get("key", "")).strip() or not str(spec.get("value", "")).strip():
            raise InvalidFieldValueError("technical_specifications", spec, "Key and value are required")
    return [{"key": str(s["key"]).strip(), "value": str(s["value"]).strip()} for s in specs]


def check_availability(value: Any) -> list:
    states = parse_json_list(value, "plant_availability")
    require_non_empty(states, "plant_availability", "At least one plant availability is required")
    for entry in states:
        if not isinstance(entry, dict) or not str(entry.get("state", "")).strip():
            raise InvalidFieldValueError("plant_availability", entry, "State is required")
    return [{"state": str(e["state"]).strip()} for e in states]


# ============================================================
# Pliki
# ============================================================

def check_asset_file(asset: AssetFile) -> AssetFile:
    """
    Sprawdź typ i rozmiar pliku przed uploadem.

    Raises:
        InvalidFileTypeError, FileTooLargeError, ValidationError (pusty plik)
    """
    if asset.role == AssetRole.IMAGE:
        file_type, allowed = 'image', ALLOWED_IMAGES
    else:
        file_type, allowed = 'doc', ALLOWED_DOCS

    if not is_allowed_file(asset.filename, file_type):
        raise InvalidFileTypeError(asset.filename, sorted(ext.lstrip('.') for ext in allowed))

    if not asset.size:
        raise ValidationError(
            f"File '{Path(asset.filename).name}' is empty",
            code="EMPTY_FILE",
            details={"filename": asset.filename}
        )

    if asset.size > MAX_FILE_SIZE:
        raise FileTooLargeError(asset.filename, asset.size_mb, MAX_FILE_SIZE_MB)

    return asset
