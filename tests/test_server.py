"""Tests for server construction and tool registration."""

from pathlib import Path

from software_planning.config import Config
from software_planning.server import build_engine, build_server


def _config(tmp_path: Path) -> Config:
	return Config(
		config_dir=tmp_path / "config",
		data_dir=tmp_path / "data",
		working_directory=tmp_path,
		default_plan="feat-x",
	)


def test_build_engine_uses_config(tmp_path: Path):
	engine = build_engine(_config(tmp_path))
	assert engine.get_active_namespace() == "feat-x"


def test_server_tool_names(tmp_path: Path):
	"""Server should register all planning tools."""
	mcp = build_server(_config(tmp_path))
	tool_names = set(mcp._tool_manager._tools.keys())

	expected = {
		"start_planning", "save_plan", "add_todo", "remove_todo", "get_todos", "update_todo_status",
		"view_plan", "view_tasks", "list_plans", "create_plan", "switch_plan",
		"get_current_plan", "set_working_directory", "get_working_directory",
	}
	missing = expected - tool_names
	assert not missing, f"Missing tools: {missing}"
