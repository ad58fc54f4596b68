from spellbinder.db.database import get_session, init_db
from spellbinder.db.operations import (
    container_to_model,
    delete_container,
    delete_plan,
    delete_segment,
    get_container,
    get_plan,
    get_segment,
    list_containers,
    list_plans,
    list_segments,
    load_ledger,
    load_library,
    plan_to_model,
    save_ledger,
    save_library,
    segment_to_model,
    upsert_container,
    upsert_plan,
    upsert_segment,
)

__all__ = [
    "container_to_model",
    "delete_container",
    "delete_plan",
    "delete_segment",
    "get_container",
    "get_plan",
    "get_segment",
    "get_session",
    "init_db",
    "list_containers",
    "list_plans",
    "list_segments",
    "load_ledger",
    "load_library",
    "plan_to_model",
    "save_ledger",
    "save_library",
    "segment_to_model",
    "upsert_container",
    "upsert_plan",
    "upsert_segment",
]
