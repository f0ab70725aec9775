"""
Plan Storage Engine - the operations a dispatcher calls.

Composes the working directory resolver, namespace manager, legacy
migrator, record store and report generator behind one explicit
instance. All operations run under a single lock so two logical
operations never interleave.

There is no cross-process locking: if two processes share a namespace,
the last save wins.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from .errors import StorageIOError
from .fs import FileSystem
from .layout import DEFAULT_NAMESPACE, StorageLayout
from .migration import LegacyMigrator
from .models import (
	DerivedDocument,
	DocumentKind,
	Goal,
	ImplementationPlan,
	Todo,
	TodoFields,
)
from .namespaces import PlanNamespaceManager
from .reports import ReportGenerator
from .store import RecordStore
from .workdir import WorkingDirectoryResolver

logger = logging.getLogger(__name__)

DOCUMENT_NOT_FOUND = {
	DocumentKind.OVERVIEW: "No plan document found yet. Create a development plan first.",
	DocumentKind.TASKS: "No task document found yet. Create a development plan first.",
}


class PlanStorageEngine:
	"""
	Versioned, namespaced plan storage.

	Usage:
		engine = PlanStorageEngine(working_directory_override="/path/to/project")
		await engine.create_namespace("feat-x", goal="build widget")
		await engine.set_active_namespace("feat-x")

		goal = (await engine.get_all_goals())[0]
		await engine.add_todo(goal.id, {"title": "Scaffold", "description": "...", "complexity": 2})
	"""

	def __init__(
		self,
		fs: Optional[FileSystem] = None,
		resolver: Optional[WorkingDirectoryResolver] = None,
		working_directory_override: Optional[str] = None,
		namespace: str = DEFAULT_NAMESPACE,
	):
		self.fs = fs or FileSystem()
		self.resolver = resolver or WorkingDirectoryResolver(self.fs)
		self.store = RecordStore(self.fs, ReportGenerator(self.fs), LegacyMigrator(self.fs))
		self._override = working_directory_override
		self._initial_namespace = namespace
		self._namespaces: Optional[PlanNamespaceManager] = None
		self._lock = asyncio.Lock()

	@property
	def namespaces(self) -> PlanNamespaceManager:
		if self._namespaces is None:
			raise StorageIOError("Plan storage has not been initialized")
		return self._namespaces

	async def _ensure_root(self) -> PlanNamespaceManager:
		if self._namespaces is None:
			working_directory = await self.resolver.resolve(self._override)
			layout = StorageLayout(working_directory)
			# Namespace listings must already see a migrated "main"
			await self.store.migrator.migrate_if_needed(layout)
			self._namespaces = PlanNamespaceManager(
				self.fs,
				layout,
				self.store,
				active=self._initial_namespace,
			)
			logger.info(f"Working directory: {working_directory}")
		return self._namespaces

	async def _ensure_ready(self) -> None:
		namespaces = await self._ensure_root()
		if not self.store.ready:
			await namespaces.reload()

	async def ensure_ready(self) -> None:
		"""Resolve the working directory and load the active namespace on first use."""
		async with self._lock:
			await self._ensure_ready()

	# Working directory

	async def resolve_working_directory(self, override: Optional[str] = None) -> Path:
		"""
		Re-anchor storage at a (possibly new) working directory and reload.

		Raises:
			InvalidDirectoryError: If ``override`` is not an existing directory
		"""
		async with self._lock:
			working_directory = await self.resolver.resolve(override)
			if self._namespaces is None:
				self._override = str(working_directory)
				await self._ensure_ready()
				return working_directory

			previous = self._namespaces.layout.working_directory
			if previous != working_directory:
				logger.info(f"Changing working directory from {previous} to {working_directory}")
			previous_layout = self._namespaces.layout
			self._namespaces.rebase(StorageLayout(working_directory))
			try:
				await self._namespaces.reload()
			except Exception:
				self._namespaces.rebase(previous_layout)
				raise
			return working_directory

	def get_working_directory(self) -> Optional[Path]:
		if self._namespaces is None:
			return None
		return self._namespaces.layout.working_directory

	def get_storage_directory(self) -> Optional[Path]:
		if self._namespaces is None:
			return None
		return self._namespaces.layout.base_dir

	# Namespaces

	async def list_namespaces(self) -> list[str]:
		async with self._lock:
			namespaces = await self._ensure_root()
			return await namespaces.list()

	async def create_namespace(self, name: str, goal: Optional[str] = None) -> Path:
		"""Create a namespace, optionally seeded with a goal. Returns its directory."""
		async with self._lock:
			namespaces = await self._ensure_root()
			paths = await namespaces.create(name, goal)
			return paths.directory

	async def set_active_namespace(self, name: str) -> None:
		async with self._lock:
			namespaces = await self._ensure_root()
			await namespaces.set_active(name)

	def get_active_namespace(self) -> str:
		if self._namespaces is None:
			return self._initial_namespace
		return self._namespaces.active

	# Goals and plans

	async def create_goal(self, description: str) -> Goal:
		async with self._lock:
			await self._ensure_ready()
			return await self.store.create_goal(description)

	async def create_plan_for_goal(self, goal_id: str) -> ImplementationPlan:
		async with self._lock:
			await self._ensure_ready()
			return await self.store.create_plan(goal_id)

	async def get_all_goals(self) -> list[Goal]:
		async with self._lock:
			await self._ensure_ready()
			return self.store.get_all_goals()

	async def get_goal(self, goal_id: str) -> Optional[Goal]:
		async with self._lock:
			await self._ensure_ready()
			return self.store.get_goal(goal_id)

	async def get_latest_goal(self) -> Optional[Goal]:
		"""Most recently created goal of the active namespace, if any."""
		async with self._lock:
			await self._ensure_ready()
			goals = self.store.get_all_goals()
		if not goals:
			return None
		# Ties on the millisecond go to the later insertion
		return max(enumerate(goals), key=lambda pair: (pair[1].created_at, pair[0]))[1]

	async def get_plan(self, goal_id: str) -> Optional[ImplementationPlan]:
		async with self._lock:
			await self._ensure_ready()
			return self.store.get_plan(goal_id)

	async def get_progress(self, goal_id: str) -> Optional[dict]:
		plan = await self.get_plan(goal_id)
		return plan.get_progress() if plan else None

	# Todos

	async def get_todos(self, goal_id: str) -> list[Todo]:
		async with self._lock:
			await self._ensure_ready()
			return self.store.get_todos(goal_id)

	async def add_todo(self, goal_id: str, fields: Union[TodoFields, dict]) -> Todo:
		async with self._lock:
			await self._ensure_ready()
			return await self.store.add_todo(goal_id, fields)

	async def remove_todo(self, goal_id: str, todo_id: str) -> bool:
		async with self._lock:
			await self._ensure_ready()
			return await self.store.remove_todo(goal_id, todo_id)

	async def update_todo_status(self, goal_id: str, todo_id: str, is_complete: bool) -> Todo:
		async with self._lock:
			await self._ensure_ready()
			return await self.store.update_todo_status(goal_id, todo_id, is_complete)

	# Derived documents

	async def read_derived_document(self, kind: Union[DocumentKind, str]) -> DerivedDocument:
		"""
		Read plan.md or tasks.md of the active namespace.

		A missing file is expected before the first save and yields a
		friendly message instead of an error.
		"""
		kind = DocumentKind(kind)
		async with self._lock:
			await self._ensure_ready()
			paths = self.namespaces.paths
			path = paths.overview if kind == DocumentKind.OVERVIEW else paths.tasks

			try:
				content = await self.fs.read_text(path)
			except FileNotFoundError:
				return DerivedDocument(kind=kind, path=path, exists=False, content=DOCUMENT_NOT_FOUND[kind])
			except (OSError, UnicodeDecodeError) as e:
				raise StorageIOError(f"Failed to read {path}: {e}") from e

		return DerivedDocument(kind=kind, path=path, exists=True, content=content)
