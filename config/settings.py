#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Konfiguracja aplikacji Catalog
Backend katalogu produktów (zakłady, natury, produkty, dokumenty)

UWAGA: W produkcji użyj pliku .env dla wrażliwych danych!
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Wczytaj zmienne środowiskowe z .env
load_dotenv()

# ============================================================
# SUPABASE - KONFIGURACJA BAZY DANYCH I STORAGE
# ============================================================

SUPABASE_URL = os.getenv("SUPABASE_URL", "")

# SERVICE_ROLE_KEY - pełne uprawnienia (obejście RLS)
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY", "")

# ============================================================
# STORAGE - KONFIGURACJA PLIKÓW
# ============================================================

# Bucket na zasoby produktów (zdjęcia, broszury, karty TDS)
PRODUCT_ASSETS_BUCKET = os.getenv("PRODUCT_ASSETS_BUCKET", "products")

# Timeout pojedynczego wywołania Storage / PostgREST (sekundy)
STORAGE_TIMEOUT = int(os.getenv("STORAGE_TIMEOUT", "30"))

# Maksymalny rozmiar pliku (10 MB)
MAX_FILE_SIZE_MB = int(os.getenv("MAX_FILE_SIZE_MB", "10"))
MAX_FILE_SIZE = MAX_FILE_SIZE_MB * 1024 * 1024

# ============================================================
# DOZWOLONE ROZSZERZENIA PLIKÓW
# ============================================================

ALLOWED_IMAGES = {'.jpg', '.jpeg', '.png', '.gif', '.webp'}
ALLOWED_DOCS = {'.pdf', '.doc', '.docx'}

# Wszystkie dozwolone rozszerzenia
ALLOWED_EXTENSIONS = ALLOWED_IMAGES | ALLOWED_DOCS

# ============================================================
# PRODUKTY - REGUŁY
# ============================================================

MIN_PRODUCT_IMAGES = 1
MAX_PRODUCT_IMAGES = 5

PRODUCT_STATUSES = ("In Stock", "Limited Stock", "Out of Stock")

DEFAULT_IMAGE_ALT = "Product image {index}"
DEFAULT_BROCHURE_TITLE = "Product Brochure"
DEFAULT_TDS_TITLE = "Technical Data Sheet"

# Liczba produktów na stronę w listach
PRODUCTS_PAGE_SIZE = 10

# ============================================================
# MIME TYPES - MAPOWANIE ROZSZERZEŃ
# ============================================================

MIME_TYPES = {
    # Obrazy
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",

    # Dokumenty
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


def get_mime_type(filename: str) -> str:
    """
    Zwróć MIME type dla pliku na podstawie rozszerzenia.

    Args:
        filename: Nazwa pliku lub ścieżka

    Returns:
        MIME type string
    """
    ext = Path(filename).suffix.lower()
    return MIME_TYPES.get(ext, "application/octet-stream")


def is_allowed_file(filename: str, file_type: str = None) -> bool:
    """
    Sprawdź czy plik ma dozwolone rozszerzenie.

    Args:
        filename: Nazwa pliku
        file_type: Opcjonalny typ ('image', 'doc')

    Returns:
        True jeśli dozwolone
    """
    ext = Path(filename).suffix.lower()

    if file_type == 'image':
        return ext in ALLOWED_IMAGES
    elif file_type == 'doc':
        return ext in ALLOWED_DOCS
    else:
        return ext in ALLOWED_EXTENSIONS


# ============================================================
# WALIDACJA KONFIGURACJI
# ============================================================

def validate_config():
    """
    Sprawdź czy konfiguracja jest poprawna.
    Wywołaj przy starcie aplikacji.
    """
    errors = []

    if not SUPABASE_URL:
        errors.append("SUPABASE_URL nie jest ustawiony")

    if not SUPABASE_SERVICE_KEY:
        errors.append("SUPABASE_SERVICE_KEY nie jest ustawiony")

    if SUPABASE_SERVICE_KEY and len(SUPABASE_SERVICE_KEY) < 100:
        errors.append("SUPABASE_SERVICE_KEY wygląda na niepoprawny (za krótki)")

    if STORAGE_TIMEOUT <= 0:
        errors.append("STORAGE_TIMEOUT musi być większy od 0")

    if errors:
        raise ValueError(f"Błędy konfiguracji: {', '.join(errors)}")

    return True
