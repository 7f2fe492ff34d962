"""Configuration management for the PDF tools service."""

import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ProcessingConfig:
    """Configuration for PDF processing."""
    max_file_size_mb: int = field(
        default_factory=lambda: int(os.environ.get("MAX_FILE_SIZE_MB", "100"))
    )
    render_scale: float = field(
        default_factory=lambda: float(os.environ.get("RENDER_SCALE", "2.0"))
    )
    jpeg_quality: int = field(
        default_factory=lambda: int(os.environ.get("JPEG_QUALITY", "95"))
    )


@dataclass
class PreferencesConfig:
    """Configuration for stored user preferences."""
    path: str = field(
        default_factory=lambda: os.environ.get(
            "PREFERENCES_PATH",
            os.path.join(os.path.expanduser("~"), ".pdf-tools", "preferences.json"),
        )
    )
    recent_tools_limit: int = field(
        default_factory=lambda: int(os.environ.get("RECENT_TOOLS_LIMIT", "10"))
    )


@dataclass
class ServerConfig:
    """Configuration for HTTP server."""
    host: str = field(
        default_factory=lambda: os.environ.get("HTTP_HOST", "0.0.0.0")
    )
    port: int = field(
        default_factory=lambda: int(os.environ.get("HTTP_PORT", "8089"))
    )


@dataclass
class Config:
    """Main configuration container."""
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    preferences: PreferencesConfig = field(default_factory=PreferencesConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Force reload of configuration from environment."""
    global _config
    _config = Config()
    return _config
