"""Configuration system using platformdirs for cross-platform paths.

Precedence is env vars > config.toml > defaults. The toml file lives in
``config_dir`` and is split into tables::

	[planning]
	working_directory = "~/code/my-project"
	default_plan = "main"

	[logging]
	level = "DEBUG"
"""

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import platformdirs

from .plans.layout import DEFAULT_NAMESPACE
from .plans.namespaces import sanitize_name

logger = logging.getLogger(__name__)

APP_NAME = "software-planning"
ENV_PREFIX = "SOFTWARE_PLANNING_"
CONFIG_FILENAME = "config.toml"


@dataclass
class Config:
	"""Where the server keeps its own files, and which project/plan it starts on."""

	config_dir: Path = field(default_factory=lambda: Path(platformdirs.user_config_dir(APP_NAME)))
	data_dir: Path = field(default_factory=lambda: Path(platformdirs.user_data_dir(APP_NAME)))

	log_dir: Path = field(init=False)

	# None means auto-detect the project root
	working_directory: Optional[Path] = None
	default_plan: str = DEFAULT_NAMESPACE
	log_level: str = "INFO"

	def __post_init__(self) -> None:
		self.log_dir = self.data_dir / "logs"

	@property
	def config_file(self) -> Path:
		return self.config_dir / CONFIG_FILENAME

	def ensure_dirs(self) -> None:
		"""Create all required directories."""
		for directory in (self.config_dir, self.data_dir, self.log_dir):
			directory.mkdir(parents=True, exist_ok=True)


PATH_FIELDS = {"config_dir", "data_dir", "working_directory"}

# attribute -> (env var suffix, toml table, toml key)
SETTINGS = {
	"config_dir": ("CONFIG_DIR", None, None),
	"data_dir": ("DATA_DIR", None, None),
	"working_directory": ("WORKDIR", "planning", "working_directory"),
	"default_plan": ("DEFAULT_PLAN", "planning", "default_plan"),
	"log_level": ("LOG_LEVEL", "logging", "level"),
}


def _coerce(attr: str, value: Any) -> Any:
	if attr in PATH_FIELDS:
		return Path(os.path.expanduser(str(value)))
	if attr == "log_level":
		return str(value).upper()
	return str(value)


def _apply_env_overrides(config: Config) -> Config:
	"""Apply SOFTWARE_PLANNING_* environment variable overrides."""
	for attr, (suffix, _, _) in SETTINGS.items():
		value = os.getenv(ENV_PREFIX + suffix)
		if value:
			setattr(config, attr, _coerce(attr, value))
	config.__post_init__()
	return config


def _apply_toml(config: Config) -> Config:
	"""Apply config.toml overrides if the file exists."""
	if not config.config_file.exists():
		return config

	with open(config.config_file, "rb") as f:
		data = tomllib.load(f)

	for attr, (_, table, key) in SETTINGS.items():
		if table is None:
			continue
		section = data.get(table, {})
		if key in section:
			setattr(config, attr, _coerce(attr, section[key]))

	config.__post_init__()
	return config


def load_config() -> Config:
	"""Load config with precedence: env vars > config.toml > defaults."""
	config = Config()
	config = _apply_toml(config)
	config = _apply_env_overrides(config)
	# An unusable default plan falls back to the default namespace with a warning
	config.default_plan = sanitize_name(config.default_plan)
	config.ensure_dirs()
	return config
