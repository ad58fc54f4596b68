"""
Card lookup against the Scryfall API, with memory and file caches.

Batch id resolution never fails as a whole: a batch that errors is logged
and its ids are left out of the result, and the placement engine skips
them. Whole-set fetches raise CardLookupError because a partial checklist
would silently corrupt a new segment.

Respects Scryfall rate limits (one request per 100ms).
"""

import asyncio
import json
import logging
from collections.abc import Sequence
from functools import lru_cache
from pathlib import Path
from typing import Any

import httpx

from spellbinder.config import SCRYFALL_BATCH_SIZE, SCRYFALL_RATE_LIMIT_DELAY, settings
from spellbinder.models.card import CardRecord, CardSet

logger = logging.getLogger(__name__)

_USER_AGENT = "Spellbinder/1.0"


class CardLookupError(Exception):
    """Raised when a set or set list cannot be fetched."""

    pass


def _chunks(items: Sequence[str], size: int) -> list[list[str]]:
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class ScryfallCardLookup:
    """
    Resolve card ids and set checklists through Scryfall.

    Resolved printings are cached in memory and as one JSON file per card
    under cache_dir; set checklists as one file per set code.
    """

    def __init__(
        self,
        base_url: str | None = None,
        cache_dir: Path | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.scryfall_api_url).rstrip("/")
        self.cache_dir = cache_dir or Path(settings.card_cache_dir)
        self._client = client
        self._cards: dict[str, CardRecord] = {}
        self._sets: list[CardSet] | None = None

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=30.0, headers={"User-Agent": _USER_AGENT})

    # --- File cache ---

    def _card_path(self, card_id: str) -> Path:
        return self.cache_dir / "cards" / f"{card_id}.json"

    def _set_path(self, set_code: str) -> Path:
        return self.cache_dir / "sets" / f"{set_code.lower()}.json"

    def _read_card(self, card_id: str) -> CardRecord | None:
        """Cached record, or None when absent or unreadable (refetched later)."""
        path = self._card_path(card_id)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return CardRecord.from_scryfall(json.load(f))
        except (OSError, json.JSONDecodeError, KeyError, TypeError) as e:
            logger.warning("Ignoring unreadable card cache %s: %s", path, e)
            return None

    def _read_set(self, set_code: str) -> list[CardRecord] | None:
        path = self._set_path(set_code)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                cached: list[dict[str, Any]] = json.load(f)
            return [CardRecord.from_scryfall(data) for data in cached]
        except (OSError, json.JSONDecodeError, KeyError, TypeError) as e:
            logger.warning("Ignoring unreadable set cache %s: %s", path, e)
            return None

    def _write_cards(self, cards: Sequence[CardRecord]) -> None:
        for card in cards:
            path = self._card_path(card.id)
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(card.to_scryfall(), f)
            self._cards[card.id] = card

    # --- Id resolution ---

    async def resolve_cards(self, card_ids: Sequence[str]) -> dict[str, CardRecord]:
        """
        Resolve card ids to records.

        Args:
            card_ids: Scryfall printing ids; duplicates are fine

        Returns:
            Dict mapping id to record. Ids that could not be resolved are absent.
        """
        resolved: dict[str, CardRecord] = {}
        missing: list[str] = []
        for card_id in dict.fromkeys(card_ids):
            card = self._cards.get(card_id) or self._read_card(card_id)
            if card is None:
                missing.append(card_id)
            else:
                self._cards[card_id] = card
                resolved[card_id] = card

        if missing:
            logger.info("Fetching %d uncached cards from Scryfall", len(missing))
            fetched = await self._fetch_by_ids(missing)
            self._write_cards(fetched)
            for card in fetched:
                resolved[card.id] = card

        return resolved

    async def _fetch_by_ids(self, card_ids: Sequence[str]) -> list[CardRecord]:
        cards: list[CardRecord] = []
        batches = _chunks(card_ids, SCRYFALL_BATCH_SIZE)
        client = self._client or self._new_client()
        try:
            for number, batch in enumerate(batches):
                try:
                    response = await client.post(
                        f"{self.base_url}/cards/collection",
                        json={"identifiers": [{"id": card_id} for card_id in batch]},
                    )
                    response.raise_for_status()
                except httpx.HTTPError as e:
                    logger.warning("Card batch %d/%d failed: %s", number + 1, len(batches), e)
                    continue

                for data in response.json().get("data", []):
                    cards.append(CardRecord.from_scryfall(data))

                if number < len(batches) - 1:
                    await asyncio.sleep(SCRYFALL_RATE_LIMIT_DELAY)
        finally:
            if self._client is None:
                await client.aclose()
        return cards

    # --- Sets ---

    async def fetch_sets(self) -> list[CardSet]:
        """
        List every set Scryfall knows about.

        Raises:
            CardLookupError: If the request fails
        """
        if self._sets is not None:
            return self._sets

        client = self._client or self._new_client()
        try:
            response = await client.get(f"{self.base_url}/sets")
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise CardLookupError(f"Failed to fetch sets: HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise CardLookupError(f"Failed to fetch sets: {e}") from e
        finally:
            if self._client is None:
                await client.aclose()

        self._sets = [
            CardSet(
                code=item["code"],
                name=item["name"],
                released_at=item.get("released_at"),
                set_type=item.get("set_type", ""),
                card_count=item.get("card_count", 0),
                icon_svg_uri=item.get("icon_svg_uri"),
            )
            for item in response.json().get("data", [])
        ]
        return self._sets

    async def fetch_set_cards(self, set_code: str) -> list[CardRecord]:
        """
        Fetch every printing in a set, extras and variations included.

        A 404 from Scryfall means the set has no matching cards and yields
        an empty list.

        Raises:
            CardLookupError: If any page fails for another reason
        """
        cached = self._read_set(set_code)
        if cached is not None:
            return cached

        cards: list[CardRecord] = []
        url: str | None = f"{self.base_url}/cards/search"
        params: dict[str, str] = {
            "q": f"set:{set_code.lower()} include:extras include:variations",
            "unique": "prints",
            "order": "set",
        }

        client = self._client or self._new_client()
        try:
            while url:
                response = await client.get(url, params=params)
                if response.status_code == 404:
                    break
                response.raise_for_status()
                data = response.json()

                cards.extend(CardRecord.from_scryfall(card) for card in data.get("data", []))

                url = data.get("next_page") if data.get("has_more") else None
                params = {}  # next_page already carries the query
                if url:
                    await asyncio.sleep(SCRYFALL_RATE_LIMIT_DELAY)
        except httpx.HTTPStatusError as e:
            raise CardLookupError(
                f"Failed to fetch cards for {set_code}: HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise CardLookupError(f"Failed to fetch cards for {set_code}: {e}") from e
        finally:
            if self._client is None:
                await client.aclose()

        path = self._set_path(set_code)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump([card.to_scryfall() for card in cards], f)
        self._write_cards(cards)
        return cards


@lru_cache(maxsize=1)
def get_card_lookup() -> ScryfallCardLookup:
    """
    Shared lookup client for the API.

    Cached after first call so the in-memory card cache survives requests.
    """
    return ScryfallCardLookup()
