from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

CATEGORIES = ("chickens", "goats")
AVAILABILITY_VALUES = ("available", "limited", "unavailable")


@dataclass
class ImagePair:
    """Public paths of the two derivatives produced from one uploaded image.

    Attributes:
        full: Path of the copy bounded by the full-size width.
        thumb: Path of the copy bounded by the thumbnail width.
    """

    full: str
    thumb: str

    def as_dict(self) -> Dict[str, str]:
        return {"full": self.full, "thumb": self.thumb}


# A stored image reference is either a legacy single URL or a {full, thumb} mapping.
ImageRef = Union[str, Dict[str, str]]


@dataclass
class AnimalRecord:
    """In-memory representation of one listing file.

    Attributes:
        category: Collection the record belongs to (one of `CATEGORIES`).
        id: Slug derived from the name at creation; also the filename stem.
        name: Display name.
        description: Free text shown on the listing.
        availability: One of `AVAILABILITY_VALUES`.
        images: Ordered image references, in display order.
    """

    category: str
    id: str
    name: str
    description: str
    availability: str
    images: List[ImageRef] = field(default_factory=list)

    def front_matter(self) -> Dict[str, Any]:
        """Return the metadata block written to disk, in file order."""
        return {
            "name": self.name,
            "images": list(self.images),
            "description": self.description,
            "availability": self.availability,
        }

    def as_dict(self) -> Dict[str, Any]:
        """Return the API representation of the record."""
        return {"id": self.id, "type": self.category, **self.front_matter()}
