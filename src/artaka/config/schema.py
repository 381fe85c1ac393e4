"""Configuration schema using Pydantic.

Why this exists:
- Type-safe configuration with validation
- Environment variable support (ARTAKA_ prefix, __ for nesting)
- Local (LM Studio style server) and remote (OpenRouter style) routing modes
- Clear documentation of every endpoint, model and limit the core uses

How to extend:
1. Add new fields to existing config classes
2. Create new config classes for new components
3. Update validate_config() in loader.py when the field is required
"""

from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StoreType(str, Enum):
    """Supported knowledge stores."""

    SQLITE = "sqlite"
    MEMORY = "memory"


class LLMConfig(BaseModel):
    """Chat-completion endpoints and models.

    The local endpoint is used for routing, and for tagging when use_local is
    set. Otherwise tagging goes to the remote endpoint with remote_api_key.
    """

    completion_url: Optional[str] = None
    remote_completion_url: Optional[str] = None
    router_model: str = "qwen3-0.6b"
    tagger_model: Optional[str] = None
    vision_tagger_model: Optional[str] = None
    remote_tagger_model: Optional[str] = None
    api_key: Optional[str] = None
    remote_api_key: Optional[str] = None
    timeout: float = Field(default=600.0, gt=0, description="Per-request timeout in seconds")
    extra_params: dict[str, Any] = Field(
        default_factory=dict, description="Extra fields merged into every chat-completion request"
    )


class EmbeddingConfig(BaseModel):
    """Embedding endpoint configuration."""

    url: Optional[str] = None
    model_name: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = Field(default=120.0, gt=0)


class RetryConfig(BaseModel):
    """Retry policy shared by every outbound model call."""

    max_retries: int = Field(default=3, ge=1)
    base_delay_ms: int = Field(default=1000, ge=0)
    exponential_backoff: bool = True


class KnowledgeConfig(BaseModel):
    """Tagging, dedup and search tuning."""

    dedup_threshold: float = Field(default=0.9, ge=-1.0, le=1.0)
    search_top_k: int = Field(default=5, gt=0)
    display_min_score: float = Field(
        default=0.4, description="Results at or below this score are hidden from display only"
    )
    excerpt_chars: int = Field(default=2000, gt=0)
    tags_with_content: int = Field(default=5, gt=0)
    tags_name_only: int = Field(default=3, gt=0)


class StoreConfig(BaseModel):
    """Knowledge store configuration."""

    store_type: StoreType = StoreType.SQLITE
    connection_string: Optional[str] = None
    def model_post_init(self, __context: Any) -> None:
        """Expand ~ in connection string."""
        if self.connection_string and "~" in self.connection_string:
            self.connection_string = self.connection_string.replace("~", str(Path.home()))


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    json_logs: bool = False
    enable_file: bool = False
    log_dir: Path = Field(default=Path.home() / ".artaka" / "logs")
    max_days: int = Field(default=30, gt=0)

    def model_post_init(self, __context: Any) -> None:
        self.log_dir = self.log_dir.expanduser()


class AppConfig(BaseSettings):
    """Main application configuration.

    Loads from:
    1. Config file (TOML)
    2. Environment variables (prefixed with ARTAKA_)
    3. .env file
    """

    model_config = SettingsConfigDict(
        env_prefix="ARTAKA_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    app_name: str = "artaka"
    data_dir: Path = Field(default=Path.home() / ".artaka")
    use_local: bool = True

    llm: LLMConfig = Field(default_factory=LLMConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    knowledge: KnowledgeConfig = Field(default_factory=KnowledgeConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def model_post_init(self, __context: Any) -> None:
        """Post-initialization: resolve the default database location."""
        self.data_dir = self.data_dir.expanduser()
        if self.store.store_type == StoreType.SQLITE and not self.store.connection_string:
            self.store.connection_string = f"sqlite:///{self.data_dir / 'knowledge.db'}"

    @property
    def tagger_url(self) -> Optional[str]:
        """Completion endpoint used for tagging in the current routing mode."""
        return self.llm.completion_url if self.use_local else self.llm.remote_completion_url

    @property
    def tagger_model(self) -> Optional[str]:
        return self.llm.tagger_model if self.use_local else self.llm.remote_tagger_model

    @property
    def tagger_api_key(self) -> Optional[str]:
        return self.llm.api_key if self.use_local else self.llm.remote_api_key
