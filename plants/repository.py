"""
PlantRepository - tabela plants (zakłady produkcyjne)
"""

from typing import Dict, Optional

from core.base_repository import BaseRepository


class PlantRepository(BaseRepository):
    """Repository dla tabeli plants"""

    TABLE_NAME = "plants"
    ENTITY_NAME = "Plant"
    UNIQUE_FIELDS = ["name"]

    def get_active(self, id: str) -> Optional[Dict]:
        """Zakład o danym ID, tylko jeśli aktywny"""
        if not id:
            return None
        return self.get_by_id(id, include_deleted=False)
