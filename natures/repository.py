"""
NatureRepository - tabela natures (kategorie produktów)
"""

from typing import Dict, Optional

from core.base_repository import BaseRepository


class NatureRepository(BaseRepository):
    """Repository dla tabeli natures"""

    TABLE_NAME = "natures"
    ENTITY_NAME = "Nature"
    UNIQUE_FIELDS = ["name", "slug"]

    def get_active(self, id: str) -> Optional[Dict]:
        """Natura o danym ID, tylko jeśli aktywna"""
        if not id:
            return None
        return self.get_by_id(id, include_deleted=False)
