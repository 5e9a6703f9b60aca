"""Interchange configuration."""

import os
import tempfile
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

DEFAULT_MAX_FILE_BYTES = 50 * 1024 * 1024
DEFAULT_MAX_QUANTITY = 1000


@dataclass
class InterchangeConfig:
    """Configuration for export and import operations."""

    # Archive metadata
    app_version: str = "1.0.0"

    # Output
    filename_prefix: str = "nestory-backup-"
    output_dir: str = field(default_factory=tempfile.gettempdir)

    # Import options
    default_currency: str = "USD"
    encoding: str = "utf-8"
    max_file_bytes: Optional[int] = DEFAULT_MAX_FILE_BYTES
    max_quantity: int = DEFAULT_MAX_QUANTITY

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "app_version": self.app_version,
            "filename_prefix": self.filename_prefix,
            "output_dir": self.output_dir,
            "default_currency": self.default_currency,
            "encoding": self.encoding,
            "max_file_bytes": self.max_file_bytes,
            "max_quantity": self.max_quantity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InterchangeConfig":
        """Create from dictionary."""
        defaults = cls()
        return cls(
            app_version=data.get("app_version", defaults.app_version),
            filename_prefix=data.get("filename_prefix", defaults.filename_prefix),
            output_dir=data.get("output_dir", defaults.output_dir),
            default_currency=data.get("default_currency", defaults.default_currency).upper(),
            encoding=data.get("encoding", defaults.encoding),
            max_file_bytes=data.get("max_file_bytes", defaults.max_file_bytes),
            max_quantity=data.get("max_quantity", defaults.max_quantity),
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "InterchangeConfig":
        """Create from NESTORY_* environment variables, falling back to defaults."""
        environ = os.environ if environ is None else environ
        data: Dict[str, Any] = {}
        env_keys = {
            "NESTORY_APP_VERSION": "app_version",
            "NESTORY_FILENAME_PREFIX": "filename_prefix",
            "NESTORY_OUTPUT_DIR": "output_dir",
            "NESTORY_DEFAULT_CURRENCY": "default_currency",
            "NESTORY_ENCODING": "encoding",
        }
        for env_key, attr in env_keys.items():
            if environ.get(env_key):
                data[attr] = environ[env_key]

        int_keys = {
            "NESTORY_MAX_FILE_BYTES": "max_file_bytes",
            "NESTORY_MAX_QUANTITY": "max_quantity",
        }
        for env_key, attr in int_keys.items():
            if environ.get(env_key):
                data[attr] = _env_int(env_key, environ[env_key])

        return cls.from_dict(data)


def _env_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None
