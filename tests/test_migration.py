"""Tests for the legacy layout migration."""

from pathlib import Path

import pytest

from software_planning.plans.errors import MigrationError
from software_planning.plans.fs import FileSystem
from software_planning.plans.layout import DEFAULT_NAMESPACE, StorageLayout
from software_planning.plans.migration import PRE_MIGRATION_SUFFIX, LegacyMigrator
from software_planning.plans.models import StructuredRecord
from software_planning.plans.store import RecordStore

from .helpers import FailingCopyFileSystem, read_record, sample_record, write_legacy_layout


def _snapshot(directory: Path) -> dict:
	return {
		str(p.relative_to(directory)): p.read_bytes()
		for p in sorted(directory.rglob("*"))
		if p.is_file()
	}


@pytest.mark.asyncio
async def test_no_legacy_layout_is_noop(tmp_path: Path):
	layout = StorageLayout(tmp_path)
	migrator = LegacyMigrator(FileSystem())

	assert await migrator.needs_migration(layout) is False
	assert await migrator.migrate_if_needed(layout) is False
	assert not layout.base_dir.exists()


@pytest.mark.asyncio
async def test_migrates_into_main_and_backup(tmp_path: Path):
	record = sample_record()
	layout = write_legacy_layout(tmp_path, record)

	ran = await LegacyMigrator(FileSystem()).migrate_if_needed(layout)

	assert ran is True
	main = layout.namespace(DEFAULT_NAMESPACE)
	assert not layout.legacy.record.exists()
	assert not layout.legacy.overview.exists()
	assert not layout.legacy.tasks.exists()
	assert StructuredRecord.from_json(main.record.read_text(encoding="utf-8")) == record
	assert main.overview.read_text(encoding="utf-8") == "# legacy plan\n"
	assert (layout.backup_dir / "data.json").exists()
	assert (layout.backup_dir / "plan.md").exists()
	assert (layout.backup_dir / "tasks.md").exists()


@pytest.mark.asyncio
async def test_optional_documents_may_be_missing(tmp_path: Path):
	layout = write_legacy_layout(tmp_path, documents=False)

	await LegacyMigrator(FileSystem()).migrate(layout)

	main = layout.namespace(DEFAULT_NAMESPACE)
	assert main.record.exists()
	assert not main.overview.exists()
	assert sorted(p.name for p in layout.backup_dir.iterdir()) == ["data.json"]


@pytest.mark.asyncio
async def test_second_run_is_noop(tmp_path: Path):
	layout = write_legacy_layout(tmp_path)
	migrator = LegacyMigrator(FileSystem())
	await migrator.migrate_if_needed(layout)
	before = _snapshot(layout.base_dir)

	ran = await migrator.migrate_if_needed(layout)

	assert ran is False
	assert not layout.legacy.record.exists()
	assert _snapshot(layout.base_dir) == before


@pytest.mark.asyncio
async def test_copy_failure_rolls_back(tmp_path: Path):
	layout = write_legacy_layout(tmp_path)
	before = _snapshot(layout.base_dir)
	fs = FailingCopyFileSystem(fail_on={"plan.md"})

	with pytest.raises(MigrationError):
		await LegacyMigrator(fs).migrate(layout)

	assert fs.copies == ["data.json"]
	assert not layout.namespace(DEFAULT_NAMESPACE).directory.exists()
	assert layout.legacy.record.exists()
	assert layout.legacy.overview.exists()
	assert layout.legacy.tasks.exists()
	assert _snapshot(layout.base_dir) == before


@pytest.mark.asyncio
async def test_rollback_keeps_existing_main_directory(tmp_path: Path):
	layout = write_legacy_layout(tmp_path)
	main = layout.namespace(DEFAULT_NAMESPACE)
	main.directory.mkdir(parents=True)
	(main.directory / "notes.txt").write_text("keep me")

	with pytest.raises(MigrationError):
		await LegacyMigrator(FailingCopyFileSystem(fail_on={"tasks.md"})).migrate(layout)

	assert (main.directory / "notes.txt").read_text() == "keep me"
	assert not main.record.exists()
	assert not main.overview.exists()
	assert layout.legacy.record.exists()


@pytest.mark.asyncio
async def test_rerun_after_failed_migration(tmp_path: Path):
	layout = write_legacy_layout(tmp_path)
	with pytest.raises(MigrationError):
		await LegacyMigrator(FailingCopyFileSystem(fail_on={"data.json"})).migrate(layout)

	assert await LegacyMigrator(FileSystem()).migrate_if_needed(layout) is True
	assert not layout.legacy.record.exists()
	assert layout.namespace(DEFAULT_NAMESPACE).record.exists()


@pytest.mark.asyncio
async def test_store_initialize_migrates(tmp_path: Path):
	record = sample_record()
	layout = write_legacy_layout(tmp_path, record)
	store = RecordStore(FileSystem())

	await store.initialize(layout, layout.namespace(DEFAULT_NAMESPACE))

	assert store.record == record
	assert read_record(layout.namespace(DEFAULT_NAMESPACE).record)["goals"].keys() == record.goals.keys()


@pytest.mark.asyncio
async def test_existing_main_record_is_kept_aside(tmp_path: Path):
	layout = write_legacy_layout(tmp_path)
	main = layout.namespace(DEFAULT_NAMESPACE)
	main.directory.mkdir(parents=True)
	main.record.write_text('{"goals": {}, "plans": {}}', encoding="utf-8")

	await LegacyMigrator(FileSystem()).migrate(layout)

	aside = main.record.with_name(main.record.name + PRE_MIGRATION_SUFFIX)
	assert aside.read_text(encoding="utf-8") == '{"goals": {}, "plans": {}}'
	assert read_record(main.record)["goals"]


@pytest.mark.asyncio
async def test_failed_migration_restores_existing_main_record(tmp_path: Path):
	layout = write_legacy_layout(tmp_path)
	main = layout.namespace(DEFAULT_NAMESPACE)
	main.directory.mkdir(parents=True)
	main.record.write_text('{"goals": {}, "plans": {}}', encoding="utf-8")
	before = _snapshot(main.directory)

	with pytest.raises(MigrationError):
		await LegacyMigrator(FailingCopyFileSystem(fail_on={"plan.md"})).migrate(layout)

	assert _snapshot(main.directory) == before
	assert layout.legacy.record.exists()
	assert layout.legacy.overview.exists()
