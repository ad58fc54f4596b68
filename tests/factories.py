"""Shared test doubles."""

from collections.abc import Sequence

from spellbinder.models.card import CardRecord, CardSet


def make_card(card_id: str, collector_number: str = "1", name: str | None = None) -> CardRecord:
    """Build a card record with a predictable name and image."""
    return CardRecord(
        id=card_id,
        name=name or f"Card {card_id}",
        set_code="tst",
        set_name="Test Set",
        collector_number=collector_number,
        image_uris={"normal": f"https://img.example/{card_id}.jpg"},
    )


class FakeCardLookup:
    """In-memory card lookup. Ids not in `cards` stay unresolved."""

    def __init__(
        self,
        cards: Sequence[CardRecord] = (),
        sets: Sequence[CardSet] = (),
        set_cards: dict[str, list[CardRecord]] | None = None,
    ) -> None:
        self.cards = {card.id: card for card in cards}
        self.sets = list(sets)
        self.set_cards = set_cards or {}
        self.requested: list[list[str]] = []

    async def resolve_cards(self, card_ids: Sequence[str]) -> dict[str, CardRecord]:
        self.requested.append(list(card_ids))
        return {card_id: self.cards[card_id] for card_id in card_ids if card_id in self.cards}

    async def fetch_sets(self) -> list[CardSet]:
        return self.sets

    async def fetch_set_cards(self, set_code: str) -> list[CardRecord]:
        return self.set_cards.get(set_code.lower(), [])
