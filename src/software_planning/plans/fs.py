"""
Async filesystem capability used by every storage component.

Blocking pathlib/shutil calls run in a worker thread so the event loop
only suspends at I/O boundaries. Tests subclass FileSystem to inject
failures.
"""

import asyncio
import os
import shutil
from pathlib import Path


class FileSystem:
	"""Thin async wrapper over the local filesystem."""

	async def exists(self, path: Path) -> bool:
		return await asyncio.to_thread(path.exists)

	async def is_dir(self, path: Path) -> bool:
		return await asyncio.to_thread(path.is_dir)

	async def is_file(self, path: Path) -> bool:
		return await asyncio.to_thread(path.is_file)

	async def is_writable(self, path: Path) -> bool:
		return await asyncio.to_thread(os.access, path, os.W_OK)

	async def mkdir(self, path: Path) -> None:
		await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)

	async def read_text(self, path: Path) -> str:
		return await asyncio.to_thread(path.read_text, encoding="utf-8")

	async def write_text(self, path: Path, content: str) -> None:
		await asyncio.to_thread(path.write_text, content, encoding="utf-8")

	async def rename(self, source: Path, target: Path) -> None:
		await asyncio.to_thread(os.replace, source, target)

	async def copy_file(self, source: Path, target: Path) -> None:
		await asyncio.to_thread(shutil.copyfile, source, target)

	async def remove_file(self, path: Path) -> None:
		await asyncio.to_thread(path.unlink)

	async def remove_tree(self, path: Path) -> None:
		await asyncio.to_thread(shutil.rmtree, path)

	async def list_dirs(self, path: Path) -> list[str]:
		"""Names of the immediate subdirectories of ``path``."""
		def _scan() -> list[str]:
			with os.scandir(path) as entries:
				return [e.name for e in entries if e.is_dir()]

		return await asyncio.to_thread(_scan)
