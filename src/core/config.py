from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

FILE_TYPE_CHOICES = ("session", "tab", "auto")


@dataclass(slots=True)
class LoggingConfig:
    """Logging configuration from config.yml."""

    level: str = "INFO"
    log_max_mb: int = 50
    log_backup_count: int = 10

    @property
    def level_number(self) -> int:
        value = logging.getLevelName(self.level.upper())
        return value if isinstance(value, int) else logging.INFO


@dataclass(slots=True)
class DecoderConfig:
    """Decoder configuration from config.yml."""

    default_file_type: str = "auto"
    strip_pickle_header: bool = True  # Skip Chromium's u32 pickle size prefix when present
    max_records: int = 0  # 0 = unlimited


@dataclass(slots=True)
class OutputConfig:
    """Output configuration from config.yml."""

    include_unprocessed: bool = True
    include_page_state: bool = False


@dataclass(slots=True)
class AppConfig:
    """Top-level configuration resolved from disk."""

    base_dir: Path
    logs_dir: Optional[Path] = None
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    decoder: DecoderConfig = field(default_factory=DecoderConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def to_json(self) -> str:
        """Serialize the configuration into a JSON string for the debug log."""
        data = {
            "logs_dir": str(self.logs_dir) if self.logs_dir else None,
            "logging": {
                "level": self.logging.level,
                "log_max_mb": self.logging.log_max_mb,
                "log_backup_count": self.logging.log_backup_count,
            },
            "decoder": {
                "default_file_type": self.decoder.default_file_type,
                "strip_pickle_header": self.decoder.strip_pickle_header,
                "max_records": self.decoder.max_records,
            },
            "output": {
                "include_unprocessed": self.output.include_unprocessed,
                "include_page_state": self.output.include_page_state,
            },
        }
        return json.dumps(data, indent=2, sort_keys=True)


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        content = yaml.safe_load(handle) or {}
        if not isinstance(content, dict):
            raise ValueError(f"Config file {path} must contain a mapping at the top level.")
        return content


def load_app_config(base_dir: Path) -> AppConfig:
    """Load application configuration from disk, providing sensible defaults."""

    config_yaml = base_dir / "config" / "config.yml"
    config_overrides = _load_yaml(config_yaml)

    logs_dir_value = config_overrides.get("logs_dir")
    logs_dir = Path(logs_dir_value) if logs_dir_value else None
    if logs_dir is not None and not logs_dir.is_absolute():
        logs_dir = base_dir / logs_dir

    logging_cfg = config_overrides.get("logging", {}) or {}
    logging_config = LoggingConfig(
        level=str(logging_cfg.get("level", "INFO")),
        log_max_mb=int(logging_cfg.get("log_max_mb", 50)),
        log_backup_count=int(logging_cfg.get("log_backup_count", 10)),
    )

    decoder_cfg = config_overrides.get("decoder", {}) or {}
    default_file_type = str(decoder_cfg.get("default_file_type", "auto")).lower()
    if default_file_type not in FILE_TYPE_CHOICES:
        raise ValueError(
            f"decoder.default_file_type must be one of {', '.join(FILE_TYPE_CHOICES)}, "
            f"got {default_file_type!r}"
        )
    decoder_config = DecoderConfig(
        default_file_type=default_file_type,
        strip_pickle_header=bool(decoder_cfg.get("strip_pickle_header", True)),
        max_records=max(0, int(decoder_cfg.get("max_records", 0))),
    )

    output_cfg = config_overrides.get("output", {}) or {}
    output_config = OutputConfig(
        include_unprocessed=bool(output_cfg.get("include_unprocessed", True)),
        include_page_state=bool(output_cfg.get("include_page_state", False)),
    )

    return AppConfig(
        base_dir=base_dir,
        logs_dir=logs_dir,
        logging=logging_config,
        decoder=decoder_config,
        output=output_config,
    )
