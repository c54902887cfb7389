"""Environment-bound configuration objects.

All groups are Pydantic BaseSettings classes that load from the process
environment and the project's .env file. Several fields accept more than one
environment name (e.g. MODEL_API_KEY and OPENAI_API_KEY both work).

Example:
    from taskpilot.config.settings import get_settings

    settings = get_settings()  # Cached singleton
    model_id = settings.models.model_id
    max_iterations = settings.orchestration.max_iterations
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


load_dotenv()

_ENV_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    populate_by_name=True,
)


class ModelSettings(BaseSettings):
    """Completion model identifier, credentials and sampling defaults.

    The model id prefix decides which chat model class is built:
    - claude-*: Anthropic (requires the optional langchain-anthropic package)
    - gpt-*: OpenAI
    - anything else: OpenAI-compatible endpoint (Ollama by default)
    """

    model_id: str = Field(
        default="gpt-4o-mini",
        validation_alias=AliasChoices("MODEL_ID", "MODEL_NAME"),
    )
    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MODEL_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY"),
    )
    base_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MODEL_BASE_URL", "OLLAMA_BASE_URL"),
    )
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, alias="MODEL_TEMPERATURE")
    max_tokens: int = Field(default=2000, ge=1, alias="MODEL_MAX_TOKENS")
    system_prompt: Optional[str] = Field(default=None, alias="MODEL_SYSTEM_PROMPT")

    model_config = _ENV_CONFIG


class OrchestrationSettings(BaseSettings):
    """Limits and policies for the plan/execute/reflect loop.

    - max_iterations: Execution/reflection rounds per agent request (1-20, default: 3)
    - max_parallel_steps: Ready steps run concurrently within a round (default: 4)
    - fail_on_tool_error: A tool reporting success=False fails its step (default: True)
    - max_query_length: Longest accepted query in characters (default: 100000)
    """

    max_iterations: int = Field(
        default=3,
        ge=1,
        le=20,
        validation_alias=AliasChoices("ORCHESTRATION_MAX_ITERATIONS", "MAX_ITERATIONS"),
    )
    max_parallel_steps: int = Field(
        default=4,
        ge=1,
        le=64,
        validation_alias=AliasChoices("ORCHESTRATION_MAX_PARALLEL_STEPS", "MAX_PARALLEL_STEPS"),
    )
    fail_on_tool_error: bool = Field(default=True, alias="ORCHESTRATION_FAIL_ON_TOOL_ERROR")
    max_query_length: int = Field(default=100_000, ge=1, alias="ORCHESTRATION_MAX_QUERY_LENGTH")
    tool_discovery_limit: int = Field(default=100, ge=1, alias="ORCHESTRATION_TOOL_DISCOVERY_LIMIT")

    model_config = _ENV_CONFIG


class BackendSettings(BaseSettings):
    """Backend variant selection for the five kernel subsystems.

    Variant names are kept as plain strings so that an unknown value surfaces
    as a backend construction error rather than a settings validation error.
    """

    tool_registry_type: str = Field(default="local", alias="TOOL_REGISTRY_TYPE")
    remote_tools_transport: str = Field(default="http", alias="REMOTE_TOOLS_TRANSPORT")
    remote_tools_url: Optional[str] = Field(default=None, alias="REMOTE_TOOLS_URL")
    remote_tools_command: Optional[str] = Field(default=None, alias="REMOTE_TOOLS_COMMAND")
    remote_tools_args: List[str] = Field(default_factory=list, alias="REMOTE_TOOLS_ARGS")
    remote_tools_timeout: float = Field(default=30.0, gt=0, alias="REMOTE_TOOLS_TIMEOUT")

    context_store_type: str = Field(
        default="sqlite",
        validation_alias=AliasChoices("CONTEXT_STORE_TYPE", "CONTEXT_MANAGER_TYPE"),
    )
    context_store_path: str = Field(default="data/contexts", alias="CONTEXT_STORE_PATH")
    context_db_path: str = Field(default="data/contexts.db", alias="CONTEXT_DB_PATH")

    memory_system_type: str = Field(default="local", alias="MEMORY_SYSTEM_TYPE")
    memory_max_entries: int = Field(default=200, ge=1, alias="MEMORY_MAX_ENTRIES")

    vector_api_url: Optional[str] = Field(default=None, alias="VECTOR_API_URL")
    vector_api_key: Optional[str] = Field(default=None, alias="VECTOR_API_KEY")
    vector_index_name: str = Field(default="taskpilot", alias="VECTOR_INDEX_NAME")

    event_bus_type: str = Field(default="memory", alias="EVENT_BUS_TYPE")
    event_bus_url: Optional[str] = Field(default=None, alias="EVENT_BUS_URL")
    event_service_name: str = Field(default="taskpilot", alias="EVENT_SERVICE_NAME")

    stream_manager_type: str = Field(default="sse", alias="STREAM_MANAGER_TYPE")

    model_config = _ENV_CONFIG


class ObservabilitySettings(BaseSettings):
    """Logging configuration."""

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str = Field(default="logs", alias="LOG_DIR")
    log_prompt_max_length: int = Field(default=500, ge=100, le=5000, alias="LOG_PROMPT_MAX_LENGTH")

    model_config = _ENV_CONFIG


class Settings(BaseSettings):
    """Root application settings.

    Four nested groups:
    - models: Completion model and sampling (ModelSettings)
    - orchestration: Loop limits and policies (OrchestrationSettings)
    - backends: Kernel backend selection (BackendSettings)
    - observability: Logging (ObservabilitySettings)

    Use get_settings() to obtain a cached singleton instance.
    """

    environment: str = Field(default="dev", alias="APP_ENV")
    models: ModelSettings = Field(default_factory=ModelSettings)
    orchestration: OrchestrationSettings = Field(default_factory=OrchestrationSettings)
    backends: BackendSettings = Field(default_factory=BackendSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
        validate_assignment=True,
        case_sensitive=False,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton Settings instance."""
    return Settings()
