"""CLI for software-planning: serve, plans, show and status commands."""

import argparse
import asyncio
import sys

from rich.console import Console
from rich.table import Table

from .config import load_config
from .logging_config import setup_logging
from .plans.engine import PlanStorageEngine
from .plans.errors import PlanStorageError
from .plans.models import DocumentKind, percent
from .server import build_engine


def _engine(args: argparse.Namespace) -> PlanStorageEngine:
	config = load_config()
	setup_logging(args.log_level or "WARNING", config.log_dir)
	if args.directory:
		return PlanStorageEngine(working_directory_override=args.directory, namespace=config.default_plan)
	return build_engine(config)


def cmd_serve(args: argparse.Namespace) -> None:
	"""Run the MCP server (stdio transport)."""
	from .server import run
	run()


async def _plans(engine: PlanStorageEngine, console: Console) -> None:
	names = await engine.list_namespaces()
	if not names:
		console.print("[dim]No plans found.[/dim]")
		return

	active = engine.get_active_namespace()
	table = Table(title=f"Plans in {engine.get_storage_directory()}")
	table.add_column("Plan", style="bold")
	table.add_column("Goals", justify="right")
	table.add_column("Tasks", justify="right")
	table.add_column("Progress", justify="right")

	for name in names:
		await engine.set_active_namespace(name)
		goals = await engine.get_all_goals()
		completed = total = 0
		for goal in goals:
			progress = await engine.get_progress(goal.id)
			if progress:
				completed += progress["completed_tasks"]
				total += progress["total_tasks"]
		pct = percent(completed, total)
		marker = " [green]*[/green]" if name == active else ""
		table.add_row(f"{name}{marker}", str(len(goals)), f"{completed}/{total}", f"{pct}%")

	if active in names:
		await engine.set_active_namespace(active)
	console.print(table)


def cmd_plans(args: argparse.Namespace) -> None:
	"""List plan namespaces with progress."""
	asyncio.run(_plans(_engine(args), Console()))


async def _show(engine: PlanStorageEngine, plan: str, kind: DocumentKind) -> str:
	if plan:
		await engine.set_active_namespace(plan)
	document = await engine.read_derived_document(kind)
	return document.content


def cmd_show(args: argparse.Namespace) -> None:
	"""Print the plan overview or task list of a plan."""
	kind = DocumentKind.TASKS if args.tasks else DocumentKind.OVERVIEW
	print(asyncio.run(_show(_engine(args), args.plan, kind)))


async def _status(engine: PlanStorageEngine, console: Console) -> None:
	await engine.ensure_ready()
	goal = await engine.get_latest_goal()

	console.print(f"[bold]Working directory:[/bold] {engine.get_working_directory()}")
	console.print(f"[bold]Storage:[/bold] {engine.get_storage_directory()}")
	console.print(f"[bold]Active plan:[/bold] {engine.get_active_namespace()}")
	if goal is None:
		console.print("[dim]No goals yet.[/dim]")
		return

	progress = await engine.get_progress(goal.id) or {}
	console.print(f"[bold]Current goal:[/bold] {goal.description}")
	console.print(
		f"[bold]Progress:[/bold] {progress.get('completed_tasks', 0)}/{progress.get('total_tasks', 0)} tasks "
		f"({progress.get('task_percent', 0)}%)"
	)


def cmd_status(args: argparse.Namespace) -> None:
	"""Show the resolved working directory, active plan and current goal."""
	asyncio.run(_status(_engine(args), Console()))


def main() -> None:
	"""CLI entry point."""
	parser = argparse.ArgumentParser(
		prog="software-planning",
		description="Namespaced software plans stored in the project tree",
	)
	parser.add_argument("-C", "--directory", type=str, default=None, help="Project directory (default: auto-detect)")
	parser.add_argument("--log-level", type=str, default=None, help="Log level for console output")
	subparsers = parser.add_subparsers(dest="command")

	# serve
	serve_parser = subparsers.add_parser("serve", help="Run MCP server (stdio)")
	serve_parser.set_defaults(func=cmd_serve)

	# plans
	plans_parser = subparsers.add_parser("plans", help="List plans with progress")
	plans_parser.set_defaults(func=cmd_plans)

	# show
	show_parser = subparsers.add_parser("show", help="Print a plan's overview or task list")
	show_parser.add_argument("plan", nargs="?", default="", help="Plan name (default: active plan)")
	show_parser.add_argument("--tasks", action="store_true", help="Show the task list instead of the overview")
	show_parser.set_defaults(func=cmd_show)

	# status
	status_parser = subparsers.add_parser("status", help="Show working directory and active plan")
	status_parser.set_defaults(func=cmd_status)

	args = parser.parse_args()

	if not args.command:
		parser.print_help()
		sys.exit(1)

	try:
		args.func(args)
	except PlanStorageError as e:
		print(f"Error: {e}", file=sys.stderr)
		sys.exit(1)
