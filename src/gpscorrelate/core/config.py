"""
Configuration management for gpscorrelate.
Handles loading, validation, and storage of all configuration parameters.
"""

import yaml
from dataclasses import dataclass, field, asdict, replace
from typing import Optional

from ..utils.time_utils import TimeZoneOffset


AUTO_TIMEZONE = "auto"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class CorrelationConfig:
    """
    Matching parameters, fixed for the duration of a run.

    When ``timezone`` is "auto" the batch pipeline resolves it from the first
    photo and continues with a copy made by with_timezone().
    """
    interpolate: bool = True
    between_segments: bool = False  # allow brackets across segment ends
    max_gap_seconds: int = 0  # feather time, 0 = unlimited
    timezone: str = AUTO_TIMEZONE  # "auto" or +HH[:MM]
    photo_offset_seconds: int = 0  # added to photo time (GPS - photo)

    def __post_init__(self):
        if self.max_gap_seconds < 0:
            raise ValueError("max_gap_seconds must not be negative")
        if not self.auto_timezone:
            TimeZoneOffset.parse(str(self.timezone))

    @property
    def auto_timezone(self) -> bool:
        return str(self.timezone).strip().lower() == AUTO_TIMEZONE

    @property
    def timezone_offset(self) -> Optional[TimeZoneOffset]:
        """Fixed offset, or None while the zone is still "auto"."""
        if self.auto_timezone:
            return None
        return TimeZoneOffset.parse(str(self.timezone))

    def with_timezone(self, offset: TimeZoneOffset) -> 'CorrelationConfig':
        """Return a copy with the time zone pinned to ``offset``."""
        return replace(self, timezone=str(offset))


@dataclass
class OutputConfig:
    """EXIF writing policy."""
    write_exif: bool = True
    datum: str = "WGS-84"
    degrees_minutes_seconds: bool = True  # False = legacy DD MM.MM
    keep_mtime: bool = False


@dataclass
class Config:
    """Main configuration class for gpscorrelate."""

    # Sub-configurations
    correlation: CorrelationConfig = field(default_factory=CorrelationConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # Batch processing
    workers: int = 1

    # Logging
    log_level: str = "WARNING"  # DEBUG, INFO, WARNING, ERROR
    log_file: Optional[str] = None

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'Config':
        """
        Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            ValueError: If the file is not valid YAML or holds unknown keys
        """
        try:
            with open(yaml_path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {yaml_path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Configuration in {yaml_path} must be a mapping")

        correlation_data = data.pop('correlation', None) or {}
        output_data = data.pop('output', None) or {}
        for section, values in (('correlation', correlation_data), ('output', output_data)):
            if not isinstance(values, dict):
                raise ValueError(f"Section '{section}' in {yaml_path} must be a mapping")

        if 'timezone' in correlation_data:
            correlation_data['timezone'] = str(correlation_data['timezone'])

        try:
            return cls(
                correlation=CorrelationConfig(**correlation_data),
                output=OutputConfig(**output_data),
                **data
            )
        except TypeError as e:
            raise ValueError(f"Invalid configuration in {yaml_path}: {e}") from e

    def to_yaml(self, yaml_path: str):
        """
        Save configuration to YAML file.

        Args:
            yaml_path: Path to output YAML file
        """
        data = {
            'log_level': self.log_level,
            'log_file': self.log_file,
            'workers': self.workers,
            'correlation': asdict(self.correlation),
            'output': asdict(self.output),
        }

        with open(yaml_path, 'w') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def validate(self) -> bool:
        """
        Validate configuration parameters.

        Returns:
            True if configuration is valid

        Raises:
            ValueError: If configuration is invalid
        """
        if self.workers < 1:
            raise ValueError("workers must be at least 1")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")

        if not self.output.datum.strip():
            raise ValueError("output datum must not be empty")

        return True


def create_default_config(output_path: str = "gpscorrelate.yaml") -> Config:
    """
    Create and save a default configuration file.

    Args:
        output_path: Path to save configuration

    Returns:
        Default Config instance
    """
    config = Config()
    config.to_yaml(output_path)
    return config
