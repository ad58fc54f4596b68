import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Literal

ImageSize = Literal["small", "normal", "large"]

_COLLECTOR_NUMBER = re.compile(r"^(\d+)(.*)$")


@dataclass(frozen=True, slots=True)
class CardRecord:
    """
    A single printing as returned by the card lookup.

    Attributes:
        id: Scryfall printing id (what segments store)
        name: Card name
        set_code: Lowercase set code (e.g., "dmu")
        set_name: Full set name
        collector_number: Collector number, may carry a suffix ("123a", "★")
        rarity: common, uncommon, rare, mythic, special, bonus
        type_line: Full type line
        image_uris: size -> URL for single-faced cards
        face_image_uris: size -> URL of the front face for double-faced cards
    """

    id: str
    name: str
    set_code: str = ""
    set_name: str = ""
    collector_number: str = ""
    rarity: str = "common"
    type_line: str = ""
    image_uris: dict[str, str] = field(default_factory=dict)
    face_image_uris: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_scryfall(cls, data: dict[str, Any]) -> "CardRecord":
        """Build a record from a Scryfall card object."""
        faces = data.get("card_faces") or []
        front = faces[0] if faces else {}
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            set_code=str(data.get("set", "")),
            set_name=str(data.get("set_name", "")),
            collector_number=str(data.get("collector_number", "")),
            rarity=str(data.get("rarity", "common")),
            type_line=str(data.get("type_line", "")),
            image_uris=dict(data.get("image_uris") or {}),
            face_image_uris=dict(front.get("image_uris") or {}),
        )

    def to_scryfall(self) -> dict[str, Any]:
        """Serialize back to the subset of Scryfall fields we cache."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "set": self.set_code,
            "set_name": self.set_name,
            "collector_number": self.collector_number,
            "rarity": self.rarity,
            "type_line": self.type_line,
        }
        if self.image_uris:
            data["image_uris"] = dict(self.image_uris)
        if self.face_image_uris:
            data["card_faces"] = [{"image_uris": dict(self.face_image_uris)}]
        return data

    def image_uri(self, size: ImageSize = "normal") -> str | None:
        """Image URL for the card, falling back to the front face."""
        if self.image_uris:
            return self.image_uris.get(size)
        if self.face_image_uris:
            return self.face_image_uris.get(size)
        return None


@dataclass(frozen=True, slots=True)
class CardSet:
    """A Scryfall set summary."""

    code: str
    name: str
    released_at: str | None = None
    set_type: str = ""
    card_count: int = 0
    icon_svg_uri: str | None = None


def _collector_sort_key(card: CardRecord) -> tuple[float, str]:
    match = _COLLECTOR_NUMBER.match(card.collector_number)
    if match:
        return float(match.group(1)), match.group(2)
    # Non-numeric collector numbers go after every numbered card
    return float("inf"), card.collector_number


def sort_by_collector_number(cards: Iterable[CardRecord]) -> list[CardRecord]:
    """Order printings by collector number: numeric part, then suffix."""
    return sorted(cards, key=_collector_sort_key)
