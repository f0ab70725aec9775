"""
Legacy layout migration.

Before namespaces existed the record and its documents lived directly in
.cursor/softwareplan/. Migration moves them into v1-backup/ and copies
them into the "main" namespace. A failed copy rolls everything back so
the tree is either fully legacy or fully migrated.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import MigrationError
from .fs import FileSystem
from .layout import DEFAULT_NAMESPACE, StorageLayout

logger = logging.getLogger(__name__)

PRE_MIGRATION_SUFFIX = ".pre-migration"


@dataclass
class BackupMove:
	"""One file moved aside during migration, restorable on rollback."""
	source: Path
	backup: Path


class LegacyMigrator:
	"""Detects and migrates the pre-namespace layout exactly once."""

	def __init__(self, fs: FileSystem):
		self.fs = fs

	async def needs_migration(self, layout: StorageLayout) -> bool:
		"""The legacy layout is present iff the legacy record file exists."""
		return await self.fs.is_file(layout.legacy.record)

	async def migrate_if_needed(self, layout: StorageLayout) -> bool:
		"""Run the migration when a legacy record exists. Returns True if it ran."""
		if not await self.needs_migration(layout):
			return False
		await self.migrate(layout)
		return True

	async def migrate(self, layout: StorageLayout) -> None:
		"""
		Move legacy files to the backup directory and copy them into "main".

		Files already present in "main" are renamed with PRE_MIGRATION_SUFFIX
		instead of being overwritten, and restored if the migration fails.

		Raises:
			MigrationError: If any step fails (after rolling back)
		"""
		legacy = layout.legacy
		main = layout.namespace(DEFAULT_NAMESPACE)
		files = [
			(legacy.record, True),
			(legacy.overview, False),
			(legacy.tasks, False),
		]

		logger.info(f"Migrating legacy plan data in {layout.base_dir} to '{DEFAULT_NAMESPACE}'")

		moves: list[BackupMove] = []
		displaced: list[BackupMove] = []
		copied: list[Path] = []
		main_existed = await self.fs.exists(main.directory)

		try:
			await self.fs.mkdir(layout.backup_dir)
			await self.fs.mkdir(main.directory)

			for source, required in files:
				if not required and not await self.fs.exists(source):
					logger.debug(f"Optional legacy file {source.name} not found, skipping")
					continue
				backup = layout.backup_dir / source.name
				await self.fs.rename(source, backup)
				moves.append(BackupMove(source=source, backup=backup))
				logger.info(f"Backed up: {source.name}")

			for move in moves:
				target = main.directory / move.backup.name
				if await self.fs.exists(target):
					aside = target.with_name(target.name + PRE_MIGRATION_SUFFIX)
					await self.fs.rename(target, aside)
					displaced.append(BackupMove(source=target, backup=aside))
					logger.warning(f"Existing {target.name} in '{DEFAULT_NAMESPACE}' kept as {aside.name}")
				copied.append(target)
				await self.fs.copy_file(move.backup, target)
				logger.info(f"Copied: {move.backup.name} to '{DEFAULT_NAMESPACE}'")
		except OSError as e:
			logger.error(f"Migration failed: {e}")
			await self._rollback(moves, displaced, main.directory, main_existed, copied)
			raise MigrationError(f"Migration failed: {e}") from e

		logger.info(f"Legacy data migrated to '{DEFAULT_NAMESPACE}', backup saved to {layout.backup_dir}")

	async def _rollback(
		self,
		moves: list[BackupMove],
		displaced: list[BackupMove],
		main_dir: Path,
		main_existed: bool,
		copied: list[Path],
	) -> None:
		"""Undo a partial migration. Individual failures are logged and skipped."""
		logger.warning("Rolling back migration...")

		if main_existed:
			for path in copied:
				try:
					await self.fs.remove_file(path)
				except FileNotFoundError:
					pass
				except OSError as e:
					logger.error(f"Failed to remove {path}: {e}")
			await self._restore(displaced)
		else:
			try:
				await self.fs.remove_tree(main_dir)
			except FileNotFoundError:
				pass
			except OSError as e:
				logger.error(f"Failed to remove {main_dir}: {e}")

		await self._restore(moves)
		logger.warning("Rollback completed")

	async def _restore(self, moves: list[BackupMove]) -> None:
		for move in reversed(moves):
			try:
				await self.fs.rename(move.backup, move.source)
				logger.info(f"Restored: {move.source.name}")
			except OSError as e:
				logger.error(f"Failed to restore {move.source.name}: {e}")
