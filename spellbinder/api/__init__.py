from spellbinder.api.containers import router as containers_router
from spellbinder.api.health import router as health_router
from spellbinder.api.imports import router as imports_router
from spellbinder.api.ownership import router as ownership_router
from spellbinder.api.plans import router as plans_router
from spellbinder.api.segments import router as segments_router
from spellbinder.api.sets import router as sets_router

__all__ = [
    "containers_router",
    "health_router",
    "imports_router",
    "ownership_router",
    "plans_router",
    "segments_router",
    "sets_router",
]
