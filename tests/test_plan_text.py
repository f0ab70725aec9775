"""Tests for splitting free-text plans into todos."""

from software_planning.plans.plan_text import DEFAULT_COMPLEXITY, parse_plan_text

PLAN = """# Implementation plan

1. **Create auth module** (complexity: 3)
   Set up the package and settings.
   - add config loader
2. Add JWT utilities (complexity: 12)
   ```python
   def sign(payload): ...
   ```
- Write tests
"""


def test_numbered_and_bulleted_items():
	todos = parse_plan_text(PLAN)

	assert [t.title for t in todos] == ["Create auth module", "Add JWT utilities", "Write tests"]
	assert todos[0].complexity == 3
	assert todos[0].description == "Set up the package and settings.\n- add config loader"


def test_complexity_is_clamped_and_defaulted():
	todos = parse_plan_text(PLAN)

	assert todos[1].complexity == 10
	assert todos[2].complexity == DEFAULT_COMPLEXITY


def test_code_block_becomes_code_example():
	todos = parse_plan_text(PLAN)

	assert todos[1].code_example.strip() == "def sign(payload): ..."
	assert todos[0].code_example is None


def test_item_without_body_uses_title_as_description():
	(todo,) = parse_plan_text("- Write tests")
	assert todo.description == "Write tests"


def test_plain_text_is_a_single_todo():
	(todo,) = parse_plan_text("Refactor the storage layer\nKeep the public API stable.")

	assert todo.title == "Refactor the storage layer"
	assert todo.description == "Keep the public API stable."


def test_empty_text_has_no_todos():
	assert parse_plan_text("") == []
	assert parse_plan_text("# Heading only\n\n") == []
