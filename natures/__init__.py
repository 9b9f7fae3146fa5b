"""
Moduł Natures - kategorie produktów
"""

from natures.repository import NatureRepository

__all__ = ['NatureRepository']
