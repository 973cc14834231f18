"""
Configuration management for the release tooling.

Provides structured configuration with validation, loaded from YAML or JSON.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .errors import ValidationError

FIRMWARE_SSH = 'git@github.com:particle-iot/firmware.git'
FIRMWARE_HTTPS = 'https://github.com/particle-iot/firmware.git'

# Recognized issue labels and the changelog sections they map to
DEFAULT_LABELS = {
    'feature': 'FEATURES',
    'enhancement': 'ENHANCEMENTS',
    'bug': 'BUGFIXES',
    'internal': 'INTERNAL',
}


@dataclass
class RepositoryConfig:
    """Configuration for the firmware repository"""
    path: Optional[str] = None  # defaults to the current directory
    firmware_remotes: List[str] = field(default_factory=lambda: [FIRMWARE_SSH, FIRMWARE_HTTPS])
    require_firmware_remote: bool = True
    branch_prefix: str = "release/v"

    def __post_init__(self):
        if not self.branch_prefix:
            raise ValueError("Branch prefix cannot be empty")
        if self.require_firmware_remote and not self.firmware_remotes:
            raise ValueError("At least one firmware remote URL is required")


@dataclass
class GitHubConfig:
    """Configuration for the GitHub API"""
    owner: str = "particle-iot"
    repo: str = "firmware"
    api_url: str = "https://api.github.com"
    token: Optional[str] = None
    timeout_seconds: float = 30.0

    def __post_init__(self):
        if not self.owner or not self.repo:
            raise ValueError("GitHub owner and repository cannot be empty")
        if self.timeout_seconds <= 0:
            raise ValueError("Timeout must be positive")

    def resolve_token(self, override: Optional[str] = None) -> Optional[str]:
        return override or self.token or os.environ.get('GITHUB_TOKEN')


@dataclass
class BackupConfig:
    """Configuration for pre-edit backups"""
    root_dir: Optional[str] = None  # a temporary directory is used if unset


@dataclass
class ChangelogConfig:
    """Configuration for changelog generation"""
    file: str = "CHANGELOG.md"
    labels: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_LABELS))

    def __post_init__(self):
        if not self.file:
            raise ValueError("Changelog file cannot be empty")
        if not self.labels:
            raise ValueError("At least one changelog label is required")


@dataclass
class LoggingConfig:
    """Configuration for logging"""
    level: str = "INFO"
    format: str = "%(message)s"
    file_path: Optional[str] = None


@dataclass
class ReleaseConfig:
    """Overall release tooling configuration"""
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)
    changelog: ChangelogConfig = field(default_factory=ChangelogConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigManager:
    """Configuration loading with validation"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def load(self, config_path: Optional[Union[str, Path]] = None) -> ReleaseConfig:
        """Load configuration from a file, or return the defaults"""
        if config_path is None:
            return ReleaseConfig()
        return self.load_from_file(config_path)

    def load_from_file(self, config_path: Union[str, Path]) -> ReleaseConfig:
        """Load configuration from file"""
        path = Path(config_path)

        if not path.exists():
            raise ValidationError(f"Config file not found: {config_path}")

        self.logger.debug(f"Loading configuration from: {path.absolute()}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                if path.suffix.lower() in ['.yaml', '.yml']:
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ValidationError(f"Cannot parse configuration file {config_path}: {e}")

        config = self.parse_config(data or {})
        validation_errors = self.validate_config(config)

        if validation_errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(validation_errors)
            raise ValidationError(error_msg)

        return config

    def parse_config(self, data: Dict[str, Any]) -> ReleaseConfig:
        """Parse configuration data into structured objects"""
        if not isinstance(data, dict):
            raise ValidationError("Configuration must be a mapping")
        try:
            return ReleaseConfig(
                repository=RepositoryConfig(**data.get('repository', {})),
                github=GitHubConfig(**data.get('github', {})),
                backup=BackupConfig(**data.get('backup', {})),
                changelog=ChangelogConfig(**data.get('changelog', {})),
                logging=LoggingConfig(**data.get('logging', {})),
            )
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid configuration: {e}")

    def validate_config(self, config: ReleaseConfig) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if config.logging.level.upper() not in valid_log_levels:
            errors.append(f"Invalid log level: {config.logging.level}")

        if config.repository.path and not Path(config.repository.path).is_dir():
            errors.append(f"Repository path does not exist: {config.repository.path}")

        for name, section in config.changelog.labels.items():
            if not name or not section:
                errors.append(f"Invalid changelog label mapping: {name!r} -> {section!r}")

        return errors


def setup_logging(config: LoggingConfig, level: Optional[int] = None) -> None:
    """Configure root logging from the logging configuration"""
    if level is None:
        level = getattr(logging, config.level.upper())

    logging.basicConfig(level=level, format=config.format, force=True)

    if config.file_path:
        log_path = Path(config.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ))
        logging.getLogger().addHandler(file_handler)
