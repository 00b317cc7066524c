"""Configuration management with lazy validation."""

from pathlib import Path
from functools import cached_property

from dictanote.models.config import (
    DEFAULT_CONFIG_PATH,
    Config,
    EditorConfig,
    LLMConfig,
    StorageConfig,
)
from dictanote.utils.logging import get_logger


logger = get_logger(__name__)


class ConfigManager:
    """
    Configuration manager with lazy section access.

    Example:
        >>> config_mgr = ConfigManager.load_default()
        >>> threshold = config_mgr.editor.diff_threshold
    """

    def __init__(self, config: Config):
        """
        Initialize config manager with loaded config.

        Args:
            config: Loaded and validated Config instance
        """
        self._config = config

    @property
    def config(self) -> Config:
        """The underlying validated configuration."""
        return self._config

    @classmethod
    def load_default(cls) -> "ConfigManager":
        """
        Load configuration from default path (~/.config/dictanote/config.yaml).

        Returns:
            ConfigManager instance with loaded config

        Raises:
            FileNotFoundError: If config file doesn't exist
            PermissionError: If config file has wrong permissions
            ValueError: If config is invalid
        """
        return cls.load_from_path(DEFAULT_CONFIG_PATH)

    @classmethod
    def load_from_path(cls, path: Path) -> "ConfigManager":
        """
        Load configuration from specific path.

        Args:
            path: Path to config.yaml file

        Returns:
            ConfigManager instance with loaded config

        Raises:
            FileNotFoundError: If config file doesn't exist
            PermissionError: If config file has wrong permissions
            ValueError: If config is invalid
        """
        logger.info("config_loading", path=str(path))

        try:
            config = Config.load(path)
            logger.info("config_loaded", path=str(path))
            return cls(config)

        except FileNotFoundError as e:
            logger.error("config_not_found", path=str(path), error=str(e))
            raise

        except PermissionError as e:
            logger.error("config_permission_error", path=str(path), error=str(e))
            raise

        except Exception as e:
            logger.error("config_validation_error", path=str(path), error=str(e))
            raise ValueError(f"Configuration validation failed: {e}") from e

    @cached_property
    def llm(self) -> LLMConfig:
        """LLM configuration."""
        return self._config.llm

    @cached_property
    def editor(self) -> EditorConfig:
        """Reconciliation policy (defaults if not specified)."""
        return self._config.editor

    @cached_property
    def storage(self) -> StorageConfig:
        """Persistence configuration (defaults if not specified)."""
        return self._config.storage
