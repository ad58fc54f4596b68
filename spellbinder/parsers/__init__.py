from spellbinder.parsers.legacy_export import (
    LegacyExportError,
    parse_container,
    parse_legacy_export,
    parse_plan,
    parse_segment,
)

__all__ = [
    "LegacyExportError",
    "parse_container",
    "parse_legacy_export",
    "parse_plan",
    "parse_segment",
]
