"""Collection declarations (code-first schema)."""

from taskapi.core.config import constants
from taskapi.core.db_client import CollectionSpec, DocumentStore
from taskapi.domain.task import TaskRecord


TASKS = CollectionSpec(
    name=constants.TASKS_COLLECTION,
    schema=TaskRecord,
    indexed_fields=("category", "priority", "deadline", "completed"),
)

# Central list of all collections in the schema
COLLECTIONS = [TASKS]


def create_store(db_path: str) -> DocumentStore:
    """Build an (unopened) document store holding every declared collection."""
    return DocumentStore(db_path, COLLECTIONS)
