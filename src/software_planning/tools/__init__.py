"""MCP tool registration."""

from mcp.server.fastmcp import FastMCP

from ..plans.engine import PlanStorageEngine
from .planning import PlanningSession, register_planning_tools


def register_all_tools(mcp: FastMCP, engine: PlanStorageEngine) -> PlanningSession:
	"""Register all MCP tools against one storage engine."""
	return register_planning_tools(mcp, engine)
