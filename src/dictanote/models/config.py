"""Configuration models for Dictanote."""

from pydantic import BaseModel, Field, HttpUrl
from pathlib import Path
from typing import Any, Dict
import yaml
import os
import stat


DEFAULT_CONFIG_PATH = Path.home() / ".config" / "dictanote" / "config.yaml"


class LLMConfig(BaseModel):
    """Configuration for the LLM API connection used by the AI collaborator."""

    endpoint: HttpUrl = Field(
        ...,
        description="LLM API endpoint URL (OpenAI or Ollama compatible)"
    )

    api_key: str = Field(
        ...,
        description="API key for authentication"
    )

    model: str = Field(
        ...,
        description="Model identifier (e.g., 'gpt-4o-mini', 'llama3')"
    )

    num_ctx: int = Field(
        default=32768,
        ge=1024,
        description="Context window size (Ollama-specific, controls VRAM usage)"
    )

    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for document-level requests"
    )

    inline_temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for single-block (inline) requests"
    )

    max_retries: int = Field(
        default=1,
        ge=0,
        le=5,
        description="Automatic retries on connection errors and timeouts"
    )

    model_config = {"frozen": True}


class EditorConfig(BaseModel):
    """Reconciliation policy for AI responses."""

    diff_threshold: int = Field(
        default=10,
        ge=0,
        description="Changed-character count separating silent edits from staged reviews"
    )

    threshold_inclusive: bool = Field(
        default=True,
        description="Whether a change exactly at the threshold is applied immediately"
    )

    history_depth: int = Field(
        default=5,
        ge=1,
        le=1000,
        description="Maximum number of undo steps kept"
    )

    inquire_append_min_chars: int = Field(
        default=10,
        ge=0,
        description=(
            "Inline contexts cannot hold a conversation: a clarifying question "
            "longer than this many characters is appended instead, shorter ones are dropped"
        )
    )

    model_config = {"frozen": True}


class StorageConfig(BaseModel):
    """Configuration for document persistence."""

    directory: str = Field(
        default=str(Path.home() / ".local" / "share" / "dictanote" / "documents"),
        description="Directory holding one JSON file per document"
    )

    autosave_delay: float = Field(
        default=2.0,
        ge=0.0,
        le=600.0,
        description="Debounce delay in seconds before a changed document is written"
    )

    @property
    def path(self) -> Path:
        """Storage directory with ~ expanded."""
        return Path(self.directory).expanduser()

    model_config = {"frozen": True}


class Config(BaseModel):
    """Root configuration for the Dictanote application."""

    llm: LLMConfig = Field(..., description="LLM API settings")
    editor: EditorConfig = Field(default_factory=EditorConfig, description="Reconciliation policy")
    storage: StorageConfig = Field(default_factory=StorageConfig, description="Persistence settings")

    @classmethod
    def load(cls, path: Path) -> "Config":
        """
        Load configuration from YAML file with environment variable overrides.

        Validates file permissions before loading.
        Raises PermissionError if file is group/world readable.

        Environment Variables:
            DICTANOTE_LLM_ENDPOINT: Override llm.endpoint
            DICTANOTE_LLM_API_KEY: Override llm.api_key
            DICTANOTE_LLM_MODEL: Override llm.model
            DICTANOTE_DIFF_THRESHOLD: Override editor.diff_threshold
            DICTANOTE_STORAGE_DIR: Override storage.directory

        Args:
            path: Path to config.yaml file

        Returns:
            Validated Config instance

        Raises:
            PermissionError: If file permissions are too open
            FileNotFoundError: If config file doesn't exist and no overrides are set
            ValueError: If YAML is invalid or validation fails
        """
        data: Dict[str, Any] = {}

        if path.exists():
            # Check file permissions (must be 600)
            mode = os.stat(path).st_mode
            if mode & (stat.S_IRWXG | stat.S_IRWXO):
                raise PermissionError(
                    f"Config file has overly permissive permissions: {oct(mode)}\n"
                    f"Run: chmod 600 {path}"
                )

            with open(path) as f:
                data = yaml.safe_load(f) or {}

            if not isinstance(data, dict):
                raise ValueError(f"Config file must contain a mapping: {path}")

        data = _apply_env_overrides(data)

        if not data.get("llm"):
            raise FileNotFoundError(
                f"Configuration file not found at {path}\n\n"
                f"Please create the file with the following format:\n\n"
                f"llm:\n"
                f"  endpoint: https://api.openai.com/v1\n"
                f"  api_key: YOUR_API_KEY_HERE\n"
                f"  model: gpt-4o-mini\n\n"
                f"editor:\n"
                f"  diff_threshold: 10\n\n"
                f"storage:\n"
                f"  directory: ~/.local/share/dictanote/documents\n"
            )

        return cls(**data)

    model_config = {"frozen": True}


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply DICTANOTE_* environment variable overrides to configuration data.

    Args:
        data: Base configuration dictionary from YAML

    Returns:
        Configuration dictionary with environment overrides applied
    """
    llm = dict(data.get("llm") or {})
    editor = dict(data.get("editor") or {})
    storage = dict(data.get("storage") or {})

    if env_endpoint := os.getenv("DICTANOTE_LLM_ENDPOINT"):
        llm["endpoint"] = env_endpoint

    if env_api_key := os.getenv("DICTANOTE_LLM_API_KEY"):
        llm["api_key"] = env_api_key

    if env_model := os.getenv("DICTANOTE_LLM_MODEL"):
        llm["model"] = env_model

    if env_threshold := os.getenv("DICTANOTE_DIFF_THRESHOLD"):
        try:
            editor["diff_threshold"] = int(env_threshold)
        except ValueError:
            pass  # Invalid value, ignore

    if env_storage := os.getenv("DICTANOTE_STORAGE_DIR"):
        storage["directory"] = env_storage

    result = dict(data)
    if llm:
        result["llm"] = llm
    if editor:
        result["editor"] = editor
    if storage:
        result["storage"] = storage
    return result
