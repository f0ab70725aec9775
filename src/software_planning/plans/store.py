"""
Record Store - JSON-backed storage for the active namespace.

Features:
- Load/save of the structured record (data.json)
- Goal, plan and todo CRUD
- Derived document regeneration after every save
- Legacy layout migration check on every (re)initialize
"""

import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from .errors import InvalidTodoError, PlanNotFoundError, StorageIOError, TodoNotFoundError
from .fs import FileSystem
from .layout import NamespacePaths, StorageLayout
from .migration import LegacyMigrator
from .models import Goal, ImplementationPlan, StructuredRecord, Todo, TodoFields, new_id, utc_now
from .reports import ReportGenerator

logger = logging.getLogger(__name__)

CORRUPT_SUFFIX = ".corrupt"


class RecordStore:
	"""
	Holds the structured record of the active namespace in memory.

	Usage:
		store = RecordStore(fs)
		await store.initialize(layout, layout.namespace("main"))

		goal = await store.create_goal("Build a widget")
		await store.create_plan(goal.id)
		todo = await store.add_todo(goal.id, {"title": "...", "description": "...", "complexity": 3})
	"""

	def __init__(
		self,
		fs: FileSystem,
		reports: Optional[ReportGenerator] = None,
		migrator: Optional[LegacyMigrator] = None,
	):
		self.fs = fs
		self.reports = reports or ReportGenerator(fs)
		self.migrator = migrator or LegacyMigrator(fs)
		self.record = StructuredRecord()
		self.layout: Optional[StorageLayout] = None
		self.paths: Optional[NamespacePaths] = None
		self.ready = False

	@property
	def working_directory(self) -> Optional[Path]:
		return self.layout.working_directory if self.layout else None

	async def initialize(self, layout: StorageLayout, paths: NamespacePaths) -> None:
		"""
		Load the record for ``paths``.

		The in-memory record is cleared first so nothing from a previously
		active namespace survives a failed or skipped read.
		"""
		self.record = StructuredRecord()
		self.ready = False
		self.layout = layout
		self.paths = paths

		await self.migrator.migrate_if_needed(layout)

		try:
			await self.fs.mkdir(paths.directory)
		except OSError as e:
			raise StorageIOError(f"Failed to create plan directory {paths.directory}: {e}") from e

		try:
			text = await self.fs.read_text(paths.record)
		except OSError as e:
			logger.info(f"No existing data file, creating new one: {e}")
			await self.save()
			self.ready = True
			return
		except UnicodeDecodeError as e:
			await self._start_fresh(paths.record, f"not valid UTF-8 ({e.reason})")
			self.ready = True
			return

		try:
			self.record = StructuredRecord.from_json(text)
			logger.info(f"Loaded existing data from: {paths.record}")
		except ValidationError as e:
			await self._start_fresh(paths.record, f"{e.error_count()} errors")

		self.ready = True

	async def _start_fresh(self, path: Path, reason: str) -> None:
		logger.warning(f"Unreadable data file {path}, starting fresh: {reason}")
		await self._set_aside(path)
		self.record = StructuredRecord()
		await self.save()

	async def _set_aside(self, path: Path) -> None:
		aside = path.with_name(path.name + CORRUPT_SUFFIX)
		try:
			await self.fs.rename(path, aside)
			logger.warning(f"Moved unreadable data file to {aside}")
		except OSError as e:
			raise StorageIOError(f"Failed to move aside {path}: {e}") from e

	async def save(self) -> None:
		"""Write the record to disk and regenerate the derived documents."""
		if self.paths is None:
			raise StorageIOError("Record store is not initialized")

		try:
			await self.fs.write_text(self.paths.record, self.record.to_json())
			await self.reports.write(self.paths, self.record, self.working_directory)
		except OSError as e:
			logger.error(f"Failed to save data to {self.paths.record}: {e}")
			raise StorageIOError(f"Failed to save data: {e}") from e

		logger.debug(f"Data saved to: {self.paths.record}")

	# Goals and plans

	async def create_goal(self, description: str) -> Goal:
		goal = self.record.add_goal(description)
		await self.save()
		return goal

	async def create_plan(self, goal_id: str) -> ImplementationPlan:
		if goal_id not in self.record.goals:
			logger.warning(f"Creating plan for unknown goal {goal_id}")
		plan = self.record.add_plan(goal_id)
		await self.save()
		return plan

	def get_goal(self, goal_id: str) -> Optional[Goal]:
		return self.record.goals.get(goal_id)

	def get_all_goals(self) -> list[Goal]:
		return list(self.record.goals.values())

	def get_plan(self, goal_id: str) -> Optional[ImplementationPlan]:
		return self.record.plans.get(goal_id)

	def _require_plan(self, goal_id: str) -> ImplementationPlan:
		plan = self.get_plan(goal_id)
		if plan is None:
			raise PlanNotFoundError(f"No plan found for goal {goal_id}")
		return plan

	# Todos

	async def add_todo(self, goal_id: str, fields: Union[TodoFields, dict]) -> Todo:
		"""
		Append a todo to the goal's plan.

		Raises:
			PlanNotFoundError: If the goal has no plan
			InvalidTodoError: If the fields fail validation (e.g. complexity > 10)
		"""
		plan = self._require_plan(goal_id)
		data = fields.model_dump() if isinstance(fields, TodoFields) else fields

		try:
			validated = TodoFields.model_validate(data)
		except ValidationError as e:
			raise InvalidTodoError(f"Invalid todo: {e}") from e

		now = utc_now()
		todo = Todo(
			id=new_id(t.id for t in plan.todos),
			title=validated.title,
			description=validated.description,
			complexity=validated.complexity,
			code_example=validated.code_example,
			created_at=now,
			updated_at=now,
		)

		plan.todos.append(todo)
		plan.updated_at = now
		await self.save()
		return todo

	async def remove_todo(self, goal_id: str, todo_id: str) -> bool:
		"""
		Remove a todo. Idempotent: an unknown id changes nothing.

		Returns:
			True if a todo was removed
		"""
		plan = self._require_plan(goal_id)

		remaining = [t for t in plan.todos if t.id != todo_id]
		if len(remaining) == len(plan.todos):
			logger.debug(f"Todo {todo_id} not in plan {goal_id}, nothing to remove")
			return False

		plan.todos = remaining
		plan.updated_at = utc_now()
		await self.save()
		return True

	async def update_todo_status(self, goal_id: str, todo_id: str, is_complete: bool) -> Todo:
		plan = self._require_plan(goal_id)
		todo = plan.find_todo(todo_id)
		if todo is None:
			raise TodoNotFoundError(f"No todo found with id {todo_id}")

		now = utc_now()
		todo.is_complete = is_complete
		todo.updated_at = now
		plan.updated_at = now
		await self.save()
		return todo

	def get_todos(self, goal_id: str) -> list[Todo]:
		plan = self.get_plan(goal_id)
		return list(plan.todos) if plan else []
