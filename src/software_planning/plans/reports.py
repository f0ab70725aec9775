"""
Derived Markdown documents.

plan.md and tasks.md are pure projections of the structured record and are
rewritten wholesale after every save. They are never read back.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from .fs import FileSystem
from .layout import NamespacePaths
from .models import Goal, ImplementationPlan, StructuredRecord, Todo

logger = logging.getLogger(__name__)

NO_TASKS_PLACEHOLDER = "No tasks yet. Create an implementation plan first."


def format_timestamp(iso_str: str) -> str:
	"""Render an ISO timestamp in local time, or the raw string if unparseable."""
	try:
		return datetime.fromisoformat(iso_str).astimezone().strftime("%Y-%m-%d %H:%M:%S")
	except (ValueError, TypeError):
		return str(iso_str)


def _header(title: str, namespace: str, working_directory: Optional[Path]) -> list[str]:
	lines = [
		f"# {title} - {namespace}",
		"",
		f"**Current plan:** {namespace}",
	]
	if working_directory is not None:
		lines.append(f"**Working directory:** {working_directory}")
	lines.append("")
	return lines


def _code_block(code: str) -> list[str]:
	return ["```", code, "```"]


def render_overview(
	goals: Iterable[Goal],
	plans: dict[str, ImplementationPlan],
	namespace: str,
	working_directory: Optional[Path] = None,
) -> str:
	"""Per-goal progress summary followed by the numbered todo list."""
	lines = _header("Software Development Plan", namespace, working_directory)

	for goal in goals:
		plan = plans.get(goal.id)
		if plan is None:
			continue

		progress = plan.get_progress()
		lines.extend([
			f"## Goal: {goal.description}",
			"",
			f"**Created:** {format_timestamp(goal.created_at)}",
			f"**Last updated:** {format_timestamp(plan.updated_at)}",
			"",
			"### Progress",
			"",
			f"- **Tasks:** {progress['completed_tasks']}/{progress['total_tasks']} ({progress['task_percent']}%)",
			f"- **Complexity:** {progress['completed_complexity']}/{progress['total_complexity']} "
			f"({progress['complexity_percent']}%)",
			"",
			"### Todos",
			"",
		])

		for index, todo in enumerate(plan.todos, start=1):
			status = "✅" if todo.is_complete else "⏳"
			lines.append(f"{index}. {status} **{todo.title}** (complexity: {todo.complexity})")
			lines.append(f"   - {todo.description}")
			if todo.code_example:
				lines.append("   - Code example:")
				lines.extend(_code_block(todo.code_example))
			lines.append(f"   - Created: {format_timestamp(todo.created_at)}")
			lines.append(f"   - Updated: {format_timestamp(todo.updated_at)}")
			lines.append("")

	return "\n".join(lines)


def _task_entry(index: int, todo: Todo, timestamp_label: str, timestamp: str) -> list[str]:
	lines = [
		f"### {index}. {todo.title}",
		"",
		f"**Complexity:** {todo.complexity}/10",
		"",
		f"**Description:** {todo.description}",
		"",
	]
	if todo.code_example:
		lines.append("**Reference code:**")
		lines.extend(_code_block(todo.code_example))
		lines.append("")
	lines.extend([f"**{timestamp_label}:** {format_timestamp(timestamp)}", "", "---", ""])
	return lines


def render_tasks(
	plans: Iterable[ImplementationPlan],
	namespace: str,
	working_directory: Optional[Path] = None,
) -> str:
	"""Pending todos across all plans, then completed ones."""
	lines = _header("Development Tasks", namespace, working_directory)

	todos = [todo for plan in plans for todo in plan.todos]
	if not todos:
		lines.append(NO_TASKS_PLACEHOLDER)
		lines.append("")
		return "\n".join(lines)

	pending = [t for t in todos if not t.is_complete]
	completed = [t for t in todos if t.is_complete]

	if pending:
		lines.extend(["## 🔄 Pending", ""])
		for index, todo in enumerate(pending, start=1):
			lines.extend(_task_entry(index, todo, "Created", todo.created_at))

	if completed:
		lines.extend(["## ✅ Completed", ""])
		for index, todo in enumerate(completed, start=1):
			lines.extend(_task_entry(index, todo, "Completed", todo.updated_at))

	return "\n".join(lines)


class ReportGenerator:
	"""Writes plan.md and tasks.md for a namespace."""

	def __init__(self, fs: FileSystem):
		self.fs = fs

	async def write(
		self,
		paths: NamespacePaths,
		record: StructuredRecord,
		working_directory: Optional[Path] = None,
	) -> bool:
		"""Regenerate both documents. Skipped (returns False) when there are no goals."""
		if not record.goals:
			return False

		overview = render_overview(record.goals.values(), record.plans, paths.name, working_directory)
		tasks = render_tasks(record.plans.values(), paths.name, working_directory)

		await self.fs.write_text(paths.overview, overview)
		await self.fs.write_text(paths.tasks, tasks)
		logger.debug(f"Regenerated {paths.overview.name} and {paths.tasks.name} in {paths.directory}")
		return True
