"""Planning tools: goals, todos, derived documents and plan namespaces."""

import json
import logging
from typing import Annotated, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from ..plans.engine import PlanStorageEngine
from ..plans.errors import PlanStorageError
from ..plans.models import MAX_COMPLEXITY, MIN_COMPLEXITY, DocumentKind, Goal
from ..plans.plan_text import parse_plan_text

logger = logging.getLogger(__name__)

NO_ACTIVE_GOAL = "No active goal. Start a new planning session first."

PLANNING_GUIDANCE = """Planning session started.

Break the goal down into concrete todos:
1. Clarify requirements and constraints
2. Split the work into small, verifiable steps
3. Add each step with add_todo, or save a whole plan with save_plan (complexity 0-10, optional code example)
4. Mark steps complete with update_todo_status as you go
5. Review progress with view_plan and view_tasks"""


class PlanningSession:
	"""Tracks the goal that todo tools operate on."""

	def __init__(self, engine: PlanStorageEngine):
		self.engine = engine
		self.goal: Optional[Goal] = None

	async def current_goal(self) -> Optional[Goal]:
		"""The current goal, restoring the newest stored goal if none is set."""
		if self.goal is None:
			self.goal = await self.engine.get_latest_goal()
			if self.goal:
				logger.info(f"Restored current goal: {self.goal.id} - {self.goal.description}")
		return self.goal

	def reset(self) -> None:
		self.goal = None


def _error(message: str, **extra) -> str:
	return json.dumps({"error": message, **extra}, indent=2)


def register_planning_tools(
	mcp: FastMCP,
	engine: PlanStorageEngine,
	session: Optional[PlanningSession] = None,
) -> PlanningSession:
	"""Register planning tools. Returns the session they share."""
	session = session or PlanningSession(engine)

	@mcp.tool()
	async def start_planning(goal: str) -> str:
		"""
		Start a new planning session with a goal.

		Args:
			goal: The software development goal to plan
		"""
		try:
			new_goal = await engine.create_goal(goal)
			await engine.create_plan_for_goal(new_goal.id)
		except PlanStorageError as e:
			return _error(str(e))

		session.goal = new_goal
		return json.dumps({
			"success": True,
			"goal": new_goal.model_dump(by_alias=True),
			"plan_name": engine.get_active_namespace(),
			"guidance": PLANNING_GUIDANCE,
		}, indent=2)

	@mcp.tool()
	async def add_todo(
		title: str,
		description: str,
		complexity: Annotated[int, Field(ge=MIN_COMPLEXITY, le=MAX_COMPLEXITY)],
		code_example: str = "",
	) -> str:
		"""
		Add a new todo item to the current plan.

		Args:
			title: Title of the todo item
			description: Detailed description of the todo item
			complexity: Complexity score (0-10)
			code_example: Optional code example
		"""
		try:
			goal = await session.current_goal()
			if goal is None:
				return _error(NO_ACTIVE_GOAL)
			todo = await engine.add_todo(goal.id, {
				"title": title,
				"description": description,
				"complexity": complexity,
				"code_example": code_example or None,
			})
		except PlanStorageError as e:
			return _error(str(e))

		return json.dumps(todo.model_dump(by_alias=True, exclude_none=True), indent=2)

	@mcp.tool()
	async def remove_todo(todo_id: str) -> str:
		"""
		Remove a todo item from the current plan.

		Args:
			todo_id: ID of the todo item to remove
		"""
		try:
			goal = await session.current_goal()
			if goal is None:
				return _error(NO_ACTIVE_GOAL)
			removed = await engine.remove_todo(goal.id, todo_id)
		except PlanStorageError as e:
			return _error(str(e))

		return json.dumps({"success": True, "todo_id": todo_id, "removed": removed}, indent=2)

	@mcp.tool()
	async def save_plan(plan: str) -> str:
		"""
		Save an implementation plan as todos of the current goal.

		Each top-level numbered or bulleted line becomes a todo; the lines
		under it become its description. End an item line with
		"(complexity: N)" to set its complexity (default 5).

		Args:
			plan: The implementation plan text to save
		"""
		todos = parse_plan_text(plan)
		saved = []
		try:
			goal = await session.current_goal()
			if goal is None:
				return _error(NO_ACTIVE_GOAL)
			if not todos:
				return _error("No todo items found in the plan text.")
			for fields in todos:
				saved.append(await engine.add_todo(goal.id, fields))
		except PlanStorageError as e:
			return _error(str(e), saved=len(saved))

		return json.dumps({
			"success": True,
			"saved": len(saved),
			"todos": [{"id": t.id, "title": t.title, "complexity": t.complexity} for t in saved],
			"message": f"Successfully saved {len(saved)} todo items to the implementation plan.",
		}, indent=2)

	@mcp.tool()
	async def get_todos() -> str:
		"""Get all todos in the current plan."""
		try:
			goal = await session.current_goal()
			if goal is None:
				return _error(NO_ACTIVE_GOAL)
			todos = await engine.get_todos(goal.id)
		except PlanStorageError as e:
			return _error(str(e))

		return json.dumps(
			[t.model_dump(by_alias=True, exclude_none=True) for t in todos],
			indent=2,
		)

	@mcp.tool()
	async def update_todo_status(todo_id: str, is_complete: bool) -> str:
		"""
		Update the completion status of a todo item.

		Args:
			todo_id: ID of the todo item
			is_complete: New completion status
		"""
		try:
			goal = await session.current_goal()
			if goal is None:
				return _error(NO_ACTIVE_GOAL)
			todo = await engine.update_todo_status(goal.id, todo_id, is_complete)
			progress = await engine.get_progress(goal.id)
		except PlanStorageError as e:
			return _error(str(e))

		return json.dumps({
			"todo": todo.model_dump(by_alias=True, exclude_none=True),
			"progress": progress,
		}, indent=2)

	@mcp.tool()
	async def view_plan() -> str:
		"""View the current plan overview in markdown format."""
		try:
			document = await engine.read_derived_document(DocumentKind.OVERVIEW)
		except PlanStorageError as e:
			return _error(str(e))
		return document.content

	@mcp.tool()
	async def view_tasks() -> str:
		"""View the current task list in markdown format."""
		try:
			document = await engine.read_derived_document(DocumentKind.TASKS)
		except PlanStorageError as e:
			return _error(str(e))
		return document.content

	@mcp.tool()
	async def list_plans() -> str:
		"""List all plans in the working directory."""
		try:
			names = await engine.list_namespaces()
		except PlanStorageError as e:
			return _error(str(e))

		return json.dumps({
			"plans": names,
			"current_plan": engine.get_active_namespace(),
			"total": len(names),
		}, indent=2)

	@mcp.tool()
	async def create_plan(name: str, goal: str = "") -> str:
		"""
		Create a new named plan.

		Args:
			name: Plan name (letters, numbers, hyphens and underscores)
			goal: Optional initial goal for the plan
		"""
		try:
			directory = await engine.create_namespace(name, goal or None)
		except PlanStorageError as e:
			return _error(str(e))

		return json.dumps({
			"success": True,
			"plan_name": name,
			"directory": str(directory),
			"hint": "Use switch_plan to make it the active plan",
		}, indent=2)

	@mcp.tool()
	async def switch_plan(name: str) -> str:
		"""
		Switch the active plan.

		Args:
			name: Name of an existing plan
		"""
		try:
			await engine.set_active_namespace(name)
			session.reset()
			goal = await session.current_goal()
		except PlanStorageError as e:
			return _error(str(e))

		return json.dumps({
			"success": True,
			"current_plan": engine.get_active_namespace(),
			"current_goal": goal.model_dump(by_alias=True) if goal else None,
		}, indent=2)

	@mcp.tool()
	async def get_current_plan() -> str:
		"""Get the name and goal of the active plan."""
		try:
			goal = await session.current_goal()
		except PlanStorageError as e:
			return _error(str(e))

		return json.dumps({
			"current_plan": engine.get_active_namespace(),
			"current_goal": goal.model_dump(by_alias=True) if goal else None,
			"storage_directory": str(engine.get_storage_directory()),
		}, indent=2)

	@mcp.tool()
	async def set_working_directory(directory: str) -> str:
		"""
		Set the working directory where the .cursor folder is created.

		Args:
			directory: Absolute or relative path to the project directory
		"""
		try:
			working_directory = await engine.resolve_working_directory(directory)
		except PlanStorageError as e:
			return _error(f"Failed to set working directory: {e}")

		session.reset()
		return json.dumps({
			"working_directory": str(working_directory),
			"storage_directory": str(engine.get_storage_directory()),
		}, indent=2)

	@mcp.tool()
	async def get_working_directory() -> str:
		"""Get the working directory where plans are stored."""
		try:
			await engine.ensure_ready()
		except PlanStorageError as e:
			return _error(str(e))

		return json.dumps({
			"working_directory": str(engine.get_working_directory()),
			"storage_directory": str(engine.get_storage_directory()),
		}, indent=2)

	@mcp.resource("planning://current-goal", mime_type="application/json")
	async def current_goal_resource() -> str:
		"""The current software development goal being planned."""
		try:
			goal = await session.current_goal()
		except PlanStorageError as e:
			return _error(str(e))
		if goal is None:
			return _error(NO_ACTIVE_GOAL)
		return json.dumps(goal.model_dump(by_alias=True), indent=2)

	@mcp.resource("planning://implementation-plan", mime_type="application/json")
	async def implementation_plan_resource() -> str:
		"""The current implementation plan with todos."""
		try:
			goal = await session.current_goal()
			if goal is None:
				return _error(NO_ACTIVE_GOAL)
			plan = await engine.get_plan(goal.id)
		except PlanStorageError as e:
			return _error(str(e))
		if plan is None:
			return _error("No implementation plan found for current goal.")
		return plan.model_dump_json(by_alias=True, exclude_none=True, indent=2)

	return session
