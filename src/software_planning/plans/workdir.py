"""
Working directory resolution.

Priority:
1. Explicit override (must exist and be a directory)
2. Install location of the running program (marker present and writable)
3. PWD / INIT_CWD environment hints (marker present)
4. Walking up from the current directory looking for markers
5. The current directory
"""

import logging
import os
import re
import sys
from pathlib import Path
from typing import Mapping, Optional
from urllib.parse import unquote

from .errors import InvalidDirectoryError
from .fs import FileSystem

logger = logging.getLogger(__name__)

PROJECT_MARKERS = (
	".git",
	"package.json",
	".cursor",
	"tsconfig.json",
	"pyproject.toml",
	"Cargo.toml",
	"go.mod",
)

ENV_HINTS = ("PWD", "INIT_CWD")

_WINDOWS_DRIVE_URL = re.compile(r"^/[a-zA-Z]:")


def normalize_override(raw: str, platform: str = sys.platform) -> str:
	"""Decode percent-encoded paths and the /d:/... form used on Windows."""
	path = raw
	if "%" in path:
		path = unquote(path)
	if platform == "win32" and _WINDOWS_DRIVE_URL.match(path):
		path = path[1:].replace("/", "\\")
		path = path[0].upper() + path[1:]
	return path


class WorkingDirectoryResolver:
	"""Determines the absolute root directory that anchors storage paths."""

	def __init__(
		self,
		fs: Optional[FileSystem] = None,
		env: Optional[Mapping[str, str]] = None,
		cwd: Optional[Path] = None,
		install_dir: Optional[Path] = None,
	):
		self.fs = fs or FileSystem()
		self._env = env
		self._cwd = cwd
		self._install_dir = install_dir

	@property
	def env(self) -> Mapping[str, str]:
		return os.environ if self._env is None else self._env

	@property
	def cwd(self) -> Path:
		return (self._cwd or Path.cwd()).resolve()

	@property
	def install_dir(self) -> Optional[Path]:
		if self._install_dir is not None:
			return self._install_dir
		if sys.argv and sys.argv[0]:
			return Path(sys.argv[0]).resolve().parent
		return None

	async def resolve(self, override: Optional[str] = None) -> Path:
		"""
		Resolve the working directory.

		Raises:
			InvalidDirectoryError: If ``override`` is given but is not an existing directory
		"""
		if override:
			return await self._resolve_override(override)

		for source, candidate in (
			("install location", await self._from_install_dir()),
			("environment", await self._from_env()),
			("project marker", await self._from_markers()),
		):
			if candidate is not None:
				logger.info(f"Working directory from {source}: {candidate}")
				return candidate

		logger.info(f"No project root detected, using current directory: {self.cwd}")
		return self.cwd

	async def _resolve_override(self, override: str) -> Path:
		path = Path(normalize_override(override))
		if not path.is_absolute():
			path = self.cwd / path
		path = path.resolve()

		if not await self.fs.exists(path):
			raise InvalidDirectoryError(f"Invalid directory: {path} does not exist")
		if not await self.fs.is_dir(path):
			raise InvalidDirectoryError(f"Invalid directory: {path} is not a directory")
		return path

	async def has_marker(self, directory: Path) -> bool:
		for marker in PROJECT_MARKERS:
			if await self.fs.exists(directory / marker):
				return True
		return False

	async def _from_install_dir(self) -> Optional[Path]:
		directory = self.install_dir
		if directory is None or not await self.fs.is_dir(directory):
			return None
		if await self.has_marker(directory) and await self.fs.is_writable(directory):
			return directory.resolve()
		return None

	async def _from_env(self) -> Optional[Path]:
		cwd = self.cwd
		for key in ENV_HINTS:
			value = self.env.get(key)
			if not value:
				continue
			path = Path(value).resolve()
			if path == cwd:
				continue
			if await self.fs.is_dir(path) and await self.has_marker(path):
				return path
			logger.debug(f"Ignoring {key}={value}: no project marker")
		return None

	async def _from_markers(self) -> Optional[Path]:
		current = self.cwd
		while current != current.parent:
			if await self.has_marker(current):
				return current
			current = current.parent
		return None
