"""Plans module - Namespaced plan storage, migration and reports."""

from .engine import PlanStorageEngine
from .errors import (
	InvalidDirectoryError,
	InvalidNamespaceNameError,
	InvalidTodoError,
	MigrationError,
	NamespaceAlreadyExistsError,
	NamespaceNotFoundError,
	PlanNotFoundError,
	PlanStorageError,
	StorageIOError,
	TodoNotFoundError,
)
from .models import DerivedDocument, DocumentKind, Goal, ImplementationPlan, StructuredRecord, Todo, TodoFields

__all__ = [
	"PlanStorageEngine",
	"Goal",
	"ImplementationPlan",
	"Todo",
	"TodoFields",
	"StructuredRecord",
	"DocumentKind",
	"DerivedDocument",
	"PlanStorageError",
	"InvalidDirectoryError",
	"InvalidNamespaceNameError",
	"NamespaceAlreadyExistsError",
	"NamespaceNotFoundError",
	"MigrationError",
	"PlanNotFoundError",
	"TodoNotFoundError",
	"StorageIOError",
	"InvalidTodoError",
]
