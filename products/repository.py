#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ProductRepository - Warstwa dostępu do tabeli products

Odpowiedzialność:
- CRUD na produktach (przez BaseRepository)
- Wyszukiwanie po slug
- Kontrola unikalności nazwy / slug
- Odczyt z dołączoną naturą i zakładem (embed PostgREST)

Zasady:
- Przechowuje pełne URL-e zasobów (images / brochure / tds jako JSONB)
- Nie zarządza plikami (to robi StorageRepository)
"""

from typing import Optional, List, Dict, Any, Tuple
import logging

from supabase import Client

from core.base_repository import BaseRepository
from core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class ProductRepository(BaseRepository):
    """
    Repository dla tabeli products.

    Example:
        repo = ProductRepository(get_supabase_client())

        product = repo.get_populated(slug="steel-bracket")
        products, total = repo.list_populated(page=1, limit=10)
    """

    TABLE_NAME = "products"
    ENTITY_NAME = "Product"
    UNIQUE_FIELDS = ["name", "slug"]

    # Produkt z naturą i zakładem w jednym zapytaniu
    POPULATED_SELECT = (
        "*, "
        "nature:natures(id, name, slug), "
        "plant:plants(id, name, certifications)"
    )

    def __init__(self, client: Client):
        super().__init__(client)

    # =========================================================
    # READ
    # =========================================================

    def get_by_slug(self, slug: str, include_deleted: bool = False) -> Optional[Dict]:
        """Pobierz produkt po slug"""
        return self.find_one(include_deleted=include_deleted, slug=slug)

    def get_populated(
        self,
        id: str = None,
        slug: str = None,
        include_deleted: bool = False
    ) -> Optional[Dict]:
        """
        Pobierz produkt z naturą {id, name, slug} i zakładem
        {id, name, certifications}.

        Args:
            id: UUID produktu
            slug: Slug produktu (gdy brak id)
            include_deleted: Czy włączyć nieaktywne

        Returns:
            Rekord lub None
        """
        try:
            query = self.client.table(self.TABLE_NAME).select(self.POPULATED_SELECT)

            if id:
                query = query.eq(self.ID_COLUMN, id)
            else:
                query = query.eq('slug', slug)

            if not include_deleted:
                query = query.eq(self.IS_ACTIVE_COLUMN, True)

            response = query.limit(1).execute()
        except Exception as e:
            logger.error(f"[{self.ENTITY_NAME}] Get populated failed: {e}")
            raise PersistenceError(f"Failed to read {self.ENTITY_NAME}: {e}")

        return response.data[0] if response.data else None

    def list_populated(
        self,
        page: int = 1,
        limit: int = 10,
        include_deleted: bool = False
    ) -> Tuple[List[Dict], int]:
        """
        Strona produktów z naturą i zakładem.

        Returns:
            Tuple (produkty, total_count)
        """
        offset = (page - 1) * limit
        try:
            query = self.client.table(self.TABLE_NAME)\
                .select(self.POPULATED_SELECT, count='exact')

            if not include_deleted:
                query = query.eq(self.IS_ACTIVE_COLUMN, True)

            response = query\
                .order('name')\
                .range(offset, offset + limit - 1)\
                .execute()
        except Exception as e:
            logger.error(f"[{self.ENTITY_NAME}] List populated failed: {e}")
            raise PersistenceError(f"Failed to list {self.ENTITY_NAME}: {e}")

        records = response.data or []
        total = response.count if response.count is not None else len(records)
        return records, total

    # =========================================================
    # UNIQUENESS
    # =========================================================

    def find_conflict(
        self,
        name: str = None,
        slug: str = None,
        exclude_id: str = None
    ) -> Optional[Dict]:
        """
        Znajdź inny produkt z tą samą nazwą (bez rozróżniania wielkości
        liter) lub tym samym slug.

        Args:
            name: Nazwa do sprawdzenia
            slug: Slug do sprawdzenia
            exclude_id: ID produktu do wykluczenia (przy edycji)

        Returns:
            Kolidujący rekord lub None
        """
        conditions = []
        if name:
            conditions.append(f'name.ilike.{_quoted(_escape_like(name))}')
        if slug:
            conditions.append(f'slug.eq.{_quoted(slug)}')

        if not conditions:
            return None

        try:
            query = self.client.table(self.TABLE_NAME)\
                .select("id, name, slug")\
                .or_(",".join(conditions))

            if exclude_id:
                query = query.neq(self.ID_COLUMN, exclude_id)

            response = query.limit(1).execute()
        except Exception as e:
            logger.error(f"[{self.ENTITY_NAME}] Conflict check failed: {e}")
            raise PersistenceError(f"Failed to check {self.ENTITY_NAME} uniqueness: {e}")

        return response.data[0] if response.data else None


def _escape_like(value: str) -> str:
    """Wartość dosłowna we wzorcu LIKE (\\, % i _ bez znaczenia specjalnego)"""
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def _quoted(value: str) -> str:
    """Wartość w cudzysłowie dla filtra PostgREST (escape \\ i ")"""
    escaped = value.replace('\\', '\\\\').replace('"', '\\"')
    return f'"{escaped}"'
