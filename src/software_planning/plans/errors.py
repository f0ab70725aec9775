"""Typed failures raised by the plan storage engine."""


class PlanStorageError(Exception):
	"""Base class for every storage engine failure."""
	pass


class InvalidDirectoryError(PlanStorageError):
	"""Raised when a working directory override does not exist or is not a directory."""
	pass


class InvalidNamespaceNameError(PlanStorageError, ValueError):
	"""Raised when an explicitly requested namespace name is unsafe."""
	pass


class NamespaceAlreadyExistsError(PlanStorageError):
	"""Raised when creating a namespace whose directory already exists."""
	pass


class NamespaceNotFoundError(PlanStorageError):
	"""Raised when selecting a namespace that does not exist."""
	pass


class MigrationError(PlanStorageError):
	"""Raised when the legacy layout could not be migrated (after rollback)."""
	pass


class PlanNotFoundError(PlanStorageError):
	"""Raised when no implementation plan exists for a goal."""
	pass


class TodoNotFoundError(PlanStorageError):
	"""Raised when a todo is not found in a plan."""
	pass


class StorageIOError(PlanStorageError):
	"""Raised when a filesystem read or write fails."""
	pass


class InvalidTodoError(PlanStorageError, ValueError):
	"""Raised when todo fields fail validation (e.g. complexity out of range)."""
	pass
