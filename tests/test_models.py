"""Tests for the structured record models."""

import json

import pytest
from pydantic import ValidationError

from software_planning.plans.models import (
	ImplementationPlan,
	StructuredRecord,
	Todo,
	TodoFields,
	new_id,
	percent,
)

from .helpers import sample_record


class TestTodoFields:
	"""Complexity must stay within 0-10."""

	@pytest.mark.parametrize("complexity", [0, 5, 10])
	def test_accepts_in_range(self, complexity: int):
		fields = TodoFields(title="t", description="d", complexity=complexity)
		assert fields.complexity == complexity

	@pytest.mark.parametrize("complexity", [-1, 11, 100])
	def test_rejects_out_of_range(self, complexity: int):
		with pytest.raises(ValidationError):
			TodoFields(title="t", description="d", complexity=complexity)

	def test_accepts_camel_case_keys(self):
		fields = TodoFields.model_validate({
			"title": "t",
			"description": "d",
			"complexity": 2,
			"codeExample": "print(1)",
		})
		assert fields.code_example == "print(1)"


class TestSerialization:
	"""Records are stored with camelCase keys."""

	def test_dump_uses_camel_case(self):
		data = json.loads(sample_record().to_json())
		goal_id = next(iter(data["goals"]))
		plan = data["plans"][goal_id]

		assert "createdAt" in data["goals"][goal_id]
		assert plan["goalId"] == goal_id
		assert "updatedAt" in plan
		assert plan["todos"][0]["isComplete"] is True
		assert plan["todos"][1]["codeExample"] == "def sign(payload): ..."

	def test_missing_code_example_is_omitted(self):
		data = json.loads(sample_record().to_json())
		plan = next(iter(data["plans"].values()))
		assert "codeExample" not in plan["todos"][0]

	def test_loads_legacy_record(self):
		legacy = {
			"goals": {"1700000000000": {
				"id": "1700000000000",
				"description": "Build a CLI",
				"createdAt": "2024-01-01T10:00:00.000Z",
			}},
			"plans": {"1700000000000": {
				"goalId": "1700000000000",
				"updatedAt": "2024-01-01T10:05:00.000Z",
				"todos": [{
					"id": "1700000000001",
					"title": "Parse args",
					"description": "Use argparse",
					"complexity": 2,
					"isComplete": False,
					"createdAt": "2024-01-01T10:01:00.000Z",
					"updatedAt": "2024-01-01T10:01:00.000Z",
				}],
			}},
		}
		record = StructuredRecord.from_json(json.dumps(legacy))

		assert record.goals["1700000000000"].description == "Build a CLI"
		todo = record.plans["1700000000000"].todos[0]
		assert todo.title == "Parse args"
		assert todo.code_example is None

	def test_round_trip_is_identical(self):
		record = sample_record()
		assert StructuredRecord.from_json(record.to_json()) == record


class TestProgress:
	"""Progress summaries never divide by zero."""

	def test_empty_plan_is_zero_percent(self):
		progress = ImplementationPlan(goal_id="g").get_progress()
		assert progress["total_tasks"] == 0
		assert progress["task_percent"] == 0
		assert progress["complexity_percent"] == 0

	def test_counts_tasks_and_complexity(self):
		plan = next(iter(sample_record().plans.values()))
		progress = plan.get_progress()

		assert progress["completed_tasks"] == 1
		assert progress["total_tasks"] == 2
		assert progress["task_percent"] == 50
		assert progress["completed_complexity"] == 3
		assert progress["total_complexity"] == 8
		assert progress["complexity_percent"] == 38

	def test_percent_rounds_half_up(self):
		assert percent(1, 8) == 13
		assert percent(1, 3) == 33
		assert percent(2, 3) == 67
		assert percent(0, 0) == 0


class TestIdentifiers:
	"""Generated ids are unique even under rapid creation."""

	def test_rapid_ids_are_unique(self):
		ids = [new_id() for _ in range(2000)]
		assert len(set(ids)) == len(ids)

	def test_new_id_avoids_taken(self):
		taken = {new_id() for _ in range(10)}
		assert new_id(taken) not in taken

	def test_rapid_goal_creation_is_unique(self):
		record = StructuredRecord()
		goals = [record.add_goal(f"goal {i}") for i in range(200)]
		assert len(record.goals) == 200
		assert len({g.id for g in goals}) == 200

	def test_find_todo(self):
		plan = ImplementationPlan(goal_id="g", todos=[Todo(id="a", title="t", description="d", complexity=1)])
		assert plan.find_todo("a").title == "t"
		assert plan.find_todo("missing") is None
