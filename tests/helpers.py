"""Shared test fixtures and helpers for software-planning tests."""

import json
from pathlib import Path
from typing import Callable, Iterable, Optional

from software_planning.plans.engine import PlanStorageEngine
from software_planning.plans.fs import FileSystem
from software_planning.plans.layout import StorageLayout
from software_planning.plans.models import StructuredRecord, Todo
from software_planning.plans.workdir import WorkingDirectoryResolver


class FailingCopyFileSystem(FileSystem):
	"""FileSystem whose copy_file fails for the given file names."""

	def __init__(self, fail_on: Iterable[str]):
		self.fail_on = set(fail_on)
		self.copies: list[str] = []

	async def copy_file(self, source: Path, target: Path) -> None:
		if source.name in self.fail_on:
			raise OSError(f"simulated copy failure for {source.name}")
		await super().copy_file(source, target)
		self.copies.append(source.name)


def make_resolver(tmp_path: Path, fs: Optional[FileSystem] = None) -> WorkingDirectoryResolver:
	"""Resolver isolated from the real environment and install location."""
	return WorkingDirectoryResolver(
		fs=fs,
		env={},
		cwd=tmp_path,
		install_dir=tmp_path / "no-install-dir",
	)


def make_engine(working_dir: Path, fs: Optional[FileSystem] = None) -> PlanStorageEngine:
	"""Engine anchored at ``working_dir``."""
	fs = fs or FileSystem()
	return PlanStorageEngine(
		fs=fs,
		resolver=make_resolver(working_dir, fs),
		working_directory_override=str(working_dir),
	)


def sample_record(goal: str = "Add user authentication") -> StructuredRecord:
	"""A record with one goal, its plan and two todos (one complete)."""
	record = StructuredRecord()
	new_goal = record.add_goal(goal)
	plan = record.add_plan(new_goal.id)
	plan.todos = [
		_todo("t1", "Create auth module", 3, complete=True),
		_todo("t2", "Add JWT utils", 5, code="def sign(payload): ..."),
	]
	return record


def _todo(todo_id: str, title: str, complexity: int, complete: bool = False, code: Optional[str] = None):
	return Todo(
		id=todo_id,
		title=title,
		description=f"{title} description",
		complexity=complexity,
		code_example=code,
		is_complete=complete,
	)


def write_legacy_layout(working_dir: Path, record: Optional[StructuredRecord] = None, documents: bool = True) -> StorageLayout:
	"""Write a pre-namespace tree: data.json (and optionally the documents) directly in the base dir."""
	layout = StorageLayout(working_dir)
	layout.base_dir.mkdir(parents=True, exist_ok=True)
	record = record or sample_record()
	layout.legacy.record.write_text(record.to_json(), encoding="utf-8")
	if documents:
		layout.legacy.overview.write_text("# legacy plan\n", encoding="utf-8")
		layout.legacy.tasks.write_text("# legacy tasks\n", encoding="utf-8")
	return layout


def read_record(path: Path) -> dict:
	return json.loads(path.read_text(encoding="utf-8"))


def sample_todo(**overrides) -> dict:
	fields = {
		"title": "Write parser",
		"description": "Parse the config file",
		"complexity": 4,
	}
	fields.update(overrides)
	return fields


def capture_tools(engine: PlanStorageEngine, register_fn: Callable) -> dict:
	"""Register tools on a mock MCP and return the captured tool and resource functions.

	Args:
		engine: Storage engine to pass to the registration function
		register_fn: The registration function (e.g., register_planning_tools)

	Returns:
		Dict mapping tool name (or resource URI) to the function
	"""
	captured = {}

	class MockMCP:
		def tool(self):
			def decorator(fn):
				captured[fn.__name__] = fn
				return fn
			return decorator

		def resource(self, uri, **kwargs):
			def decorator(fn):
				captured[uri] = fn
				return fn
			return decorator

	register_fn(MockMCP(), engine)
	return captured
