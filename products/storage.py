#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StorageRepository - Warstwa dostępu do Supabase Storage

Odpowiedzialność:
- Upload zasobów produktu (zdjęcia, broszury, karty TDS)
- Generowanie publicznych URL
- Usuwanie zasobów po URL (idempotentne)

Zasady:
- Używa SERVICE_ROLE_KEY (pełne uprawnienia)
- Każde wywołanie ma timeout klienta (ClientOptions.storage_client_timeout);
  przekroczenie timeoutu = błąd uploadu
- Obsługuje błędy gracefully (zwraca tuple success/error)
"""

import logging
from typing import Optional, List, Tuple

from supabase import Client

from config.settings import (
    PRODUCT_ASSETS_BUCKET,
    MAX_FILE_SIZE,
    get_mime_type,
)
from products.paths import StoragePaths

logger = logging.getLogger(__name__)


class StorageRepository:
    """
    Repository dla operacji na Supabase Storage.

    Użyj tej klasy zamiast bezpośrednich operacji na client.storage.

    Example:
        from core.supabase_client import get_supabase_client
        from products.storage import StorageRepository

        storage = StorageRepository(get_supabase_client(timeout=15))

        ok, url_or_error = storage.put(data, "front.png", role="image")
        storage.delete(url_or_error)
    """

    def __init__(self, client: Client, bucket: str = None):
        """
        Args:
            client: Instancja Supabase Client (z SERVICE_ROLE_KEY)
            bucket: Nazwa bucketa (domyślnie PRODUCT_ASSETS_BUCKET)
        """
        self.client = client
        self.bucket = bucket or PRODUCT_ASSETS_BUCKET

    # =========================================================
    # UPLOAD
    # =========================================================

    def upload(
        self,
        path: str,
        data: bytes,
        content_type: Optional[str] = None,
        upsert: bool = False,
        bucket: str = None
    ) -> Tuple[bool, str]:
        """
        Upload pliku do Storage.

        Args:
            path: Ścieżka docelowa w Storage (np. z StoragePaths)
            data: Dane binarne pliku
            content_type: MIME type (auto-detect jeśli None)
            upsert: True = nadpisz jeśli plik istnieje
            bucket: Bucket (domyślnie self.bucket)

        Returns:
            Tuple (success: bool, path_or_error: str)
        """
        if not path:
            return False, "Brak ścieżki docelowej"

        if not data:
            return False, "Brak danych do uploadu"

        if len(data) > MAX_FILE_SIZE:
            size_mb = len(data) / (1024 * 1024)
            max_mb = MAX_FILE_SIZE / (1024 * 1024)
            return False, f"Plik za duży ({size_mb:.1f} MB > {max_mb:.0f} MB)"

        if not content_type:
            content_type = get_mime_type(path)

        bucket = bucket or self.bucket

        try:
            # upsert jako STRING (wymagane przez Supabase!)
            self.client.storage.from_(bucket).upload(
                path=path,
                file=data,
                file_options={
                    "content-type": content_type,
                    "upsert": "true" if upsert else "false"
                }
            )

            logger.info(f"[STORAGE] Upload: {bucket}/{path} ({len(data):,} bytes)")
            return True, path

        except Exception as e:
            error_msg = str(e)

            if "Duplicate" in error_msg and not upsert:
                logger.warning(f"[STORAGE] Plik już istnieje: {path}")
                return False, "Plik już istnieje"

            if "timed out" in error_msg.lower() or "timeout" in type(e).__name__.lower():
                logger.error(f"[STORAGE] Upload timeout: {path}")
                return False, f"Upload timeout: {error_msg}"

            logger.error(f"[STORAGE] Upload failed: {path} - {error_msg}")
            return False, f"Upload error: {error_msg}"

    def put(
        self,
        data: bytes,
        filename: str,
        role: str = "image",
        bucket: str = None
    ) -> Tuple[bool, str]:
        """
        Zapisz nowy zasób pod unikalną nazwą.

        Returns:
            Tuple (success, public_url_or_error)
        """
        bucket = bucket or self.bucket
        path = StoragePaths.asset(role, filename)

        success, result = self.upload(path, data, get_mime_type(filename), upsert=False, bucket=bucket)
        if not success:
            return False, result

        return True, self.get_public_url(path, bucket)

    # =========================================================
    # DELETE
    # =========================================================

    def delete_path(self, path: str, bucket: str = None) -> bool:
        """
        Usuń plik ze Storage.

        Returns:
            True jeśli sukces (lub plik nie istniał)
        """
        if not path:
            return False

        bucket = bucket or self.bucket

        try:
            self.client.storage.from_(bucket).remove([path])
            logger.info(f"[STORAGE] Delete: {bucket}/{path}")
            return True

        except Exception as e:
            # Jeśli plik nie istnieje - to też sukces
            if "not found" in str(e).lower():
                return True

            logger.error(f"[STORAGE] Delete failed: {path} - {e}")
            return False

    def delete(self, url: str, bucket: str = None) -> bool:
        """
        Usuń zasób po jego publicznym URL.

        Idempotentne: ponowne usunięcie tego samego URL to sukces.

        Returns:
            True jeśli zasobu już nie ma w Storage
        """
        bucket = bucket or self.bucket
        path = StoragePaths.extract_path_from_url(url, bucket)

        if not path:
            logger.warning(f"[STORAGE] URL spoza bucketa {bucket}: {url}")
            return False

        return self.delete_path(path, bucket)

    def delete_multiple(self, urls: List[str], bucket: str = None) -> List[str]:
        """
        Usuń wiele zasobów po URL, pojedynczo.

        Returns:
            Lista URL, których nie udało się usunąć
        """
        return [url for url in urls if url and not self.delete(url, bucket)]

    # =========================================================
    # URL GENERATION
    # =========================================================

    def get_public_url(self, path: str, bucket: str = None) -> str:
        """
        Publiczny URL dla pliku (pusty string jeśli brak ścieżki).

        UWAGA: Wymaga publicznego bucketa lub publicznej polityki RLS!
        """
        if not path:
            return ""
        return StoragePaths.get_public_url(path, bucket or self.bucket)
