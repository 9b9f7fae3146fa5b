"""
Moduł Plants - zakłady produkcyjne
"""

from plants.repository import PlantRepository

__all__ = ['PlantRepository']
