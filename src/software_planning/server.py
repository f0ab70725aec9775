"""software-planning MCP server."""

import logging

from mcp.server.fastmcp import FastMCP

from .config import Config, load_config
from .logging_config import setup_logging
from .plans.engine import PlanStorageEngine
from .tools import register_all_tools

logger = logging.getLogger(__name__)


def build_engine(config: Config) -> PlanStorageEngine:
	"""Create the storage engine the tools share."""
	override = str(config.working_directory) if config.working_directory else None
	return PlanStorageEngine(working_directory_override=override, namespace=config.default_plan)


def build_server(config: Config) -> FastMCP:
	"""Create the MCP server with all tools registered against one engine."""
	mcp = FastMCP("software-planning")
	register_all_tools(mcp, build_engine(config))
	return mcp


def run() -> None:
	"""Run the MCP server on stdio."""
	config = load_config()
	setup_logging(config.log_level, config.log_dir)
	logger.info("Starting software-planning MCP server...")
	build_server(config).run()
