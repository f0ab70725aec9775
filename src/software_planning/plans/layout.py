"""On-disk layout of the plan storage tree."""

from dataclasses import dataclass, field
from pathlib import Path

STORAGE_PARTS = (".cursor", "softwareplan")
RECORD_FILENAME = "data.json"
OVERVIEW_FILENAME = "plan.md"
TASKS_FILENAME = "tasks.md"
BACKUP_DIRNAME = "v1-backup"
DEFAULT_NAMESPACE = "main"


@dataclass(frozen=True)
class NamespacePaths:
	"""Paths of one namespace directory."""
	name: str
	directory: Path
	record: Path = field(init=False)
	overview: Path = field(init=False)
	tasks: Path = field(init=False)

	def __post_init__(self) -> None:
		object.__setattr__(self, "record", self.directory / RECORD_FILENAME)
		object.__setattr__(self, "overview", self.directory / OVERVIEW_FILENAME)
		object.__setattr__(self, "tasks", self.directory / TASKS_FILENAME)


@dataclass(frozen=True)
class StorageLayout:
	"""
	Paths anchored at a working directory.

	<working_directory>/.cursor/softwareplan/ holds one subdirectory per
	namespace, the v1-backup directory, and (before migration) the legacy
	record and documents.
	"""
	working_directory: Path
	base_dir: Path = field(init=False)
	backup_dir: Path = field(init=False)

	def __post_init__(self) -> None:
		object.__setattr__(self, "base_dir", self.working_directory.joinpath(*STORAGE_PARTS))
		object.__setattr__(self, "backup_dir", self.base_dir / BACKUP_DIRNAME)

	@property
	def legacy(self) -> NamespacePaths:
		"""Pre-namespace files live directly under the base directory."""
		return NamespacePaths(name="", directory=self.base_dir)

	def namespace(self, name: str) -> NamespacePaths:
		return NamespacePaths(name=name, directory=self.base_dir / name)
