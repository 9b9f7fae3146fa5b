#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StoragePaths - Ścieżki zasobów produktów w Supabase Storage

Zasady:
1. Każdy upload dostaje UNIKALNĄ nazwę → upsert=false, zamiennik nigdy
   nie nadpisuje zasobu, który zastępuje
2. Zasoby pogrupowane po roli (images / brochures / tds)
3. Rekord produktu trzyma pełne publiczne URL-e

Struktura w Storage:
    {bucket}/
    ├── images/{uuid}_{filename}
    ├── brochures/{uuid}_{filename}
    └── tds/{uuid}_{filename}
"""

import re
import uuid
from pathlib import Path
from typing import Optional

from config.settings import PRODUCT_ASSETS_BUCKET, SUPABASE_URL


class StoragePaths:
    """
    Generator ścieżek w Supabase Storage.

    Wszystkie metody są statyczne - nie wymagają instancji klasy.

    Przykład użycia:
        path = StoragePaths.asset("images", "front.png")
        # → "images/9f1c..._front.png"

        url = StoragePaths.get_public_url(path)
        # → "https://xxx.supabase.co/storage/v1/object/public/products/images/9f1c..._front.png"
    """

    BUCKET = PRODUCT_ASSETS_BUCKET

    # Role zasobów → folder w buckecie
    ROLE_FOLDERS = {
        'image': 'images',
        'brochure': 'brochures',
        'tds': 'tds',
    }

    # =========================================================
    # ŚCIEŻKI ZASOBÓW
    # =========================================================

    @staticmethod
    def safe_filename(filename: str) -> str:
        """
        Oczyść nazwę pliku: bez ścieżki, tylko [A-Za-z0-9._-].
        """
        name = Path(filename or "").name
        name = re.sub(r'[^A-Za-z0-9._-]+', '_', name).strip('_')
        return name or "file"

    @staticmethod
    def asset(role: str, filename: str) -> str:
        """
        Ścieżka dla nowego zasobu.

        Args:
            role: 'image', 'brochure' lub 'tds'
            filename: Oryginalna nazwa pliku

        Returns:
            Ścieżka: {folder}/{uuid}_{filename}
        """
        folder = StoragePaths.ROLE_FOLDERS.get(role, role)
        return f"{folder}/{uuid.uuid4().hex}_{StoragePaths.safe_filename(filename)}"

    # =========================================================
    # GENEROWANIE URL
    # =========================================================

    @staticmethod
    def get_public_url(path: str, bucket: str = None) -> str:
        """
        Generuj publiczny URL ze ścieżki Storage.

        UWAGA: Wymaga publicznego bucketa lub publicznej polityki RLS!
        """
        if not path:
            return ""
        bucket = bucket or StoragePaths.BUCKET
        return f"{SUPABASE_URL}/storage/v1/object/public/{bucket}/{path}"

    # =========================================================
    # EKSTRAKCJA
    # =========================================================

    @staticmethod
    def extract_path_from_url(url: str, bucket: str = None) -> Optional[str]:
        """
        Wyciągnij ścieżkę Storage z pełnego URL.

        Obsługuje URL publiczne i podpisane.

        Example:
            >>> url = "https://xxx.supabase.co/storage/v1/object/public/products/images/a_b.png"
            >>> StoragePaths.extract_path_from_url(url)
            "images/a_b.png"
        """
        if not url:
            return None

        bucket = bucket or StoragePaths.BUCKET

        for kind in ('public', 'sign'):
            marker = f"/storage/v1/object/{kind}/{bucket}/"
            if marker in url:
                return url.split(marker, 1)[1].split('?')[0]  # Usuń query params

        return None
