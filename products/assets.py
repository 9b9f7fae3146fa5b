"""
Catalog - Product Assets
========================
Typy zasobów produktu (zdjęcia, broszura, karta TDS) oraz instrukcje
przekazywane przez klienta przy aktualizacji listy zdjęć.

Zasoby zapisywane w rekordzie (kolumny JSONB):
    images   = [{"url", "alt", "is_primary"}, ...]
    brochure = {"url", "title"}
    tds      = {"url", "title"}
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Union


class AssetRole(Enum):
    """Rola zasobu w produkcie"""
    IMAGE = "image"
    BROCHURE = "brochure"
    TDS = "tds"


# ============================================================
# Zasoby zapisane w rekordzie
# ============================================================

@dataclass
class ImageAsset:
    """Zdjęcie produktu"""
    url: str
    alt: str = ""
    is_primary: bool = False

    def to_dict(self) -> dict:
        return {"url": self.url, "alt": self.alt, "is_primary": self.is_primary}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImageAsset":
        return cls(
            url=data.get("url", ""),
            alt=data.get("alt") or "",
            is_primary=bool(data.get("is_primary", False)),
        )


@dataclass
class DocumentAsset:
    """Broszura lub karta TDS"""
    url: str
    title: str = ""

    def to_dict(self) -> dict:
        return {"url": self.url, "title": self.title}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["DocumentAsset"]:
        if not data or not data.get("url"):
            return None
        return cls(url=data["url"], title=data.get("title") or "")


# ============================================================
# Upload
# ============================================================

@dataclass
class AssetFile:
    """
    Plik do wysłania do Storage (jeszcze nie zapisany).

    Attributes:
        data: Zawartość pliku
        filename: Oryginalna nazwa pliku
        role: Rola zasobu
        metadata: Dodatkowe dane (np. alt, title, is_primary)
    """
    data: bytes
    filename: str
    role: AssetRole = AssetRole.IMAGE
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.data or b"")

    @property
    def size_mb(self) -> float:
        return self.size / (1024 * 1024)


@dataclass
class UploadOutcome:
    """Wynik udanego uploadu w bieżącym żądaniu (do kompensacji)"""
    url: str
    bucket: str
    role: Optional[AssetRole] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


# ============================================================
# Instrukcje dla listy zdjęć (aktualizacja)
# ============================================================

@dataclass
class KeepImage:
    """Zachowaj istniejące zdjęcie (dopasowanie po dokładnym URL)"""
    source_url: str
    is_primary: bool = False
    alt_override: Optional[str] = None


@dataclass
class UploadImage:
    """Nowe zdjęcie - przed uploadem"""
    file: AssetFile
    alt: Optional[str] = None
    is_primary: bool = False


@dataclass
class ReplaceWithUpload:
    """Nowe zdjęcie - po udanym uploadzie"""
    outcome: UploadOutcome
    alt: str = ""
    is_primary: bool = False


ImageInstruction = Union[KeepImage, UploadImage]
ReconcileInstruction = Union[KeepImage, ReplaceWithUpload]


@dataclass
class ReconciliationPlan:
    """Wynik uzgodnienia listy zdjęć"""
    final_images: List[ImageAsset] = field(default_factory=list)
    orphan_urls: Set[str] = field(default_factory=set)

    def images_to_list(self) -> List[dict]:
        return [image.to_dict() for image in self.final_images]


def images_from_record(record: Optional[Dict[str, Any]]) -> List[ImageAsset]:
    """Zdjęcia zapisane w rekordzie produktu"""
    if not record:
        return []
    return [ImageAsset.from_dict(img) for img in (record.get("images") or []) if img and img.get("url")]
