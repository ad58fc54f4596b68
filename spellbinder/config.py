from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "Spellbinder"
    debug: bool = False

    database_url: str = "sqlite+aiosqlite:///./spellbinder.db"

    scryfall_api_url: str = "https://api.scryfall.com"

    # Per-card and per-set JSON cache written by the card lookup client
    card_cache_dir: str = ".cache/scryfall"


settings = Settings()


# =============================================================================
# PHYSICAL LAYOUT LIMITS
# =============================================================================

# Binder pages come in 3x3 and 3x4 pocket layouts
ALLOWED_SLOTS_PER_PAGE = (9, 12)

# Leading blank slots a segment may reserve before its first card
MAX_SEGMENT_OFFSET = 9


# =============================================================================
# SCRYFALL LIMITS
# =============================================================================

# /cards/collection accepts at most 75 identifiers per request
SCRYFALL_BATCH_SIZE = 75

# Scryfall asks for 50-100ms between requests
SCRYFALL_RATE_LIMIT_DELAY = 0.1
