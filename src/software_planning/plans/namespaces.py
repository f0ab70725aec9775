"""
Plan namespaces - independently addressable plan directories.

Each namespace is a subdirectory of .cursor/softwareplan/ holding one
structured record and its derived documents. Exactly one namespace is
active at a time; switching reloads the record store from scratch.
"""

import logging
import re
from typing import TYPE_CHECKING, Optional

from .errors import (
	InvalidNamespaceNameError,
	NamespaceAlreadyExistsError,
	NamespaceNotFoundError,
	StorageIOError,
)
from .fs import FileSystem
from .layout import BACKUP_DIRNAME, DEFAULT_NAMESPACE, NamespacePaths, StorageLayout
from .models import StructuredRecord

if TYPE_CHECKING:
	from .store import RecordStore

logger = logging.getLogger(__name__)

SAFE_NAME_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9_-]*")
UNSAFE_FRAGMENTS = ("..", "/", "\\", "\0")
RESERVED_NAMES = frozenset({BACKUP_DIRNAME})


def is_safe_name(name: str) -> bool:
	"""Whether ``name`` can be used as a namespace directory name."""
	if not name or not SAFE_NAME_PATTERN.fullmatch(name):
		return False
	return not any(fragment in name for fragment in UNSAFE_FRAGMENTS)


def sanitize_name(raw: Optional[str], explicit: bool = False) -> str:
	"""
	Validate a namespace name.

	Implicit resolution (stored state, defaults) falls back to "main" for an
	unsafe name. Explicit requests raise instead of being silently renamed.

	Raises:
		InvalidNamespaceNameError: If ``explicit`` and the name is unsafe or reserved
	"""
	name = raw or ""
	if is_safe_name(name) and name not in RESERVED_NAMES:
		return name

	if explicit:
		raise InvalidNamespaceNameError(
			f"Invalid plan name: {name!r}. Plan names must contain only letters, numbers, "
			"hyphens, and underscores, must start with a letter or number, "
			f"and cannot be {BACKUP_DIRNAME!r}."
		)

	logger.warning(f"Unsafe plan name {name!r}, falling back to {DEFAULT_NAMESPACE!r}")
	return DEFAULT_NAMESPACE


class PlanNamespaceManager:
	"""
	Enumerates, creates and switches plan namespaces.

	Usage:
		manager = PlanNamespaceManager(fs, layout, store)
		await manager.create("feat-x", goal_description="build widget")
		await manager.set_active("feat-x")
	"""

	def __init__(
		self,
		fs: FileSystem,
		layout: StorageLayout,
		store: "RecordStore",
		active: str = DEFAULT_NAMESPACE,
	):
		self.fs = fs
		self.store = store
		self.layout = layout
		self._active = active
		self._paths = self._recompute_paths()

	@property
	def active(self) -> str:
		return self._active

	@property
	def paths(self) -> NamespacePaths:
		return self._paths

	def _recompute_paths(self) -> NamespacePaths:
		self._active = sanitize_name(self._active)
		self._paths = self.layout.namespace(self._active)
		return self._paths

	def rebase(self, layout: StorageLayout) -> None:
		"""Point the manager at a different working directory, keeping the active name."""
		self.layout = layout
		self._recompute_paths()
		logger.info(f"Plan storage moved to {layout.base_dir} (plan: {self._active})")

	async def list(self) -> list[str]:
		"""Namespace names, sorted, excluding the migration backup directory."""
		try:
			names = await self.fs.list_dirs(self.layout.base_dir)
		except FileNotFoundError:
			return []
		except OSError as e:
			raise StorageIOError(f"Failed to list plans in {self.layout.base_dir}: {e}") from e

		return sorted(name for name in names if name != BACKUP_DIRNAME)

	async def create(self, name: str, goal_description: Optional[str] = None) -> NamespacePaths:
		"""
		Create a namespace directory with an initial record.

		Args:
			name: Namespace name (validated strictly)
			goal_description: Optional goal to pre-populate the record with

		Raises:
			InvalidNamespaceNameError: If the name is unsafe
			NamespaceAlreadyExistsError: If the directory already exists
		"""
		name = sanitize_name(name, explicit=True)
		paths = self.layout.namespace(name)

		if await self.fs.exists(paths.directory):
			raise NamespaceAlreadyExistsError(f"Plan '{name}' already exists.")

		record = StructuredRecord()
		if goal_description:
			goal = record.add_goal(goal_description)
			record.add_plan(goal.id)

		try:
			await self.fs.mkdir(paths.directory)
			await self.fs.write_text(paths.record, record.to_json())
		except OSError as e:
			raise StorageIOError(f"Failed to create plan '{name}': {e}") from e

		logger.info(f"Created new plan: {name}")
		return paths

	async def set_active(self, name: str) -> None:
		"""
		Switch the active namespace and reload the record store.

		The previous pointer is restored if the reload fails.

		Raises:
			InvalidNamespaceNameError: If the name is unsafe
			NamespaceNotFoundError: If no such namespace exists
			MigrationError: If the legacy layout could not be migrated
		"""
		name = sanitize_name(name, explicit=True)
		available = await self.list()
		if name not in available:
			raise NamespaceNotFoundError(
				f"Plan '{name}' does not exist. Available plans: {', '.join(available) or '(none)'}"
			)

		previous = self._active
		logger.info(f"Switching from plan '{previous}' to '{name}'")
		self._active = name
		self._recompute_paths()

		try:
			await self.reload()
		except Exception:
			self._active = previous
			self._recompute_paths()
			raise

	async def reload(self) -> None:
		"""Discard the in-memory record and load the active namespace."""
		await self.store.initialize(self.layout, self._paths)
