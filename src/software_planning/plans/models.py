"""
Plan Models - Pydantic schemas for the per-namespace structured record.

Python attributes are snake_case; the JSON written to disk uses camelCase
keys (createdAt, goalId, isComplete, codeExample) so records written by
earlier releases load unchanged.
"""

import math
import uuid
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MIN_COMPLEXITY = 0
MAX_COMPLEXITY = 10


def utc_now() -> str:
	"""Current time as an ISO-8601 UTC string with millisecond precision."""
	return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_id(taken: Iterable[str] = ()) -> str:
	"""Generate a random identifier not present in ``taken``."""
	existing = set(taken)
	while True:
		candidate = uuid.uuid4().hex[:16]
		if candidate not in existing:
			return candidate


class RecordModel(BaseModel):
	"""Shared config: camelCase on the wire, snake_case in Python."""
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Goal(RecordModel):
	"""A planning goal. Immutable after creation."""
	id: str = Field(description="Unique goal identifier")
	description: str = Field(description="What the goal achieves")
	created_at: str = Field(default_factory=utc_now)


class TodoFields(RecordModel):
	"""Caller-supplied part of a todo."""
	title: str = Field(description="Short title of the todo")
	description: str = Field(description="Detailed description")
	complexity: int = Field(ge=MIN_COMPLEXITY, le=MAX_COMPLEXITY, description="Complexity score (0-10)")
	code_example: Optional[str] = Field(default=None, description="Optional code example")


class Todo(TodoFields):
	"""A single todo item within an implementation plan."""
	id: str = Field(description="Unique todo identifier within its plan")
	is_complete: bool = Field(default=False)
	created_at: str = Field(default_factory=utc_now)
	updated_at: str = Field(default_factory=utc_now)


class ImplementationPlan(RecordModel):
	"""The ordered todo list for one goal."""
	goal_id: str = Field(description="Goal this plan belongs to")
	todos: list[Todo] = Field(default_factory=list)
	updated_at: str = Field(default_factory=utc_now)

	def find_todo(self, todo_id: str) -> Optional[Todo]:
		for todo in self.todos:
			if todo.id == todo_id:
				return todo
		return None

	def get_progress(self) -> dict:
		"""Calculate task and complexity progress."""
		completed = [t for t in self.todos if t.is_complete]
		total_tasks = len(self.todos)
		total_complexity = sum(t.complexity for t in self.todos)
		completed_complexity = sum(t.complexity for t in completed)

		return {
			"total_tasks": total_tasks,
			"completed_tasks": len(completed),
			"task_percent": percent(len(completed), total_tasks),
			"total_complexity": total_complexity,
			"completed_complexity": completed_complexity,
			"complexity_percent": percent(completed_complexity, total_complexity),
		}


class StructuredRecord(RecordModel):
	"""All goals and plans of one namespace."""
	goals: dict[str, Goal] = Field(default_factory=dict)
	plans: dict[str, ImplementationPlan] = Field(default_factory=dict)

	def add_goal(self, description: str) -> Goal:
		"""Insert a new goal with a fresh id."""
		goal = Goal(id=new_id(self.goals), description=description)
		self.goals[goal.id] = goal
		return goal

	def add_plan(self, goal_id: str) -> ImplementationPlan:
		"""Insert (or replace) the empty plan for a goal."""
		plan = ImplementationPlan(goal_id=goal_id)
		self.plans[goal_id] = plan
		return plan

	def to_json(self) -> str:
		return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)

	@classmethod
	def from_json(cls, text: str) -> "StructuredRecord":
		return cls.model_validate_json(text)


class DocumentKind(str, Enum):
	"""Derived document selector."""
	OVERVIEW = "overview"
	TASKS = "tasks"


class DerivedDocument(BaseModel):
	"""Result of reading a derived document from the active namespace."""
	kind: DocumentKind
	path: Path
	exists: bool
	content: str


def percent(part: int, whole: int) -> int:
	"""Percentage rounded half up, 0 when ``whole`` is 0."""
	if whole <= 0:
		return 0
	return math.floor(part / whole * 100 + 0.5)
