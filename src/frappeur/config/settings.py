"""
Frappeur configuration with hybrid YAML + ENV support.

Architecture:
- FastAPI service (api_port): mint intake, status, monitoring, webhooks
- Solana RPC (chain.rpc_url + backups): transaction submission
- DAS read-index (chain.read_index_url): indexing confirmation

Priority: Environment variables > YAML config > Pydantic defaults
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from frappeur import __version__

DEFAULT_FATAL_ERROR_MARKERS = [
    "CollectionNotFound",
    "IncorrectOwner",
    "InvalidCollectionAuthority",
    "CollectionMustBeSized",
    "InsufficientMintCapacity",
    "LeafAuthorityMustSign",
    "insufficient funds",
]


class ChainConfig(BaseSettings):
    """Solana RPC endpoints and signing identity."""

    rpc_url: str = Field(default="https://api.devnet.solana.com")
    backup_rpc_urls: str = Field(
        default="",
        description="Comma-separated backup RPC URLs, tried in order",
    )
    read_index_url: Optional[str] = Field(
        default=None,
        description="DAS-capable endpoint (defaults to rpc_url)",
    )
    private_key: Optional[str] = Field(
        default=None, description="Base58 secret key of the minting identity"
    )
    keypair_path: Optional[str] = Field(default=None)
    commitment: str = Field(default="confirmed")
    connect_timeout: float = Field(default=10.0, ge=0.1, le=120.0)
    read_index_timeout: float = Field(default=10.0, ge=0.1, le=120.0)

    @field_validator("backup_rpc_urls", mode="before")
    @classmethod
    def join_backup_urls(cls, v):
        """Accept YAML lists as well as comma-separated strings."""
        if isinstance(v, (list, tuple)):
            return ",".join(str(url) for url in v)
        return v or ""

    @field_validator("keypair_path")
    @classmethod
    def expand_keypair_path(cls, v: Optional[str]) -> Optional[str]:
        """Expand home directory in keypair path."""
        if v:
            return os.path.expanduser(v)
        return v

    @property
    def endpoints(self) -> list[str]:
        """Primary endpoint followed by backups, without duplicates."""
        urls = [self.rpc_url]
        for url in self.backup_rpc_urls.split(","):
            url = url.strip()
            if url and url not in urls:
                urls.append(url)
        return urls

    @property
    def resolved_read_index_url(self) -> str:
        """Read-index URL, falling back to the primary RPC."""
        return self.read_index_url or self.rpc_url


class ConfirmationConfig(BaseSettings):
    """Submission retry budget and confirmation polling."""

    max_attempts: int = Field(default=3, ge=1, le=10)
    poll_interval: float = Field(default=3.0, ge=0.0, le=60.0)
    max_polls: int = Field(default=30, ge=1, le=200)
    retry_delay: float = Field(default=7.0, ge=0.0, le=120.0)
    blockhash_retry_delay: float = Field(default=1.0, ge=0.0, le=60.0)
    rate_limit_base_delay: float = Field(default=1.0, ge=0.0, le=60.0)
    skip_preflight: bool = Field(default=False)
    fatal_error_markers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_FATAL_ERROR_MARKERS)
    )


class CounterOffsetConfig(BaseModel):
    """Candidate byte offset of num_minted inside TreeConfig."""

    offset: int = Field(ge=0)
    label: str = Field(default="")


class LeafIndexConfig(BaseSettings):
    """Leaf-index resolution timing and TreeConfig layout guesses."""

    initial_delay: float = Field(default=1.0, ge=0.0, le=30.0)
    retry_delay: float = Field(default=3.0, ge=0.0, le=60.0)
    sanity_ceiling: int = Field(default=10_000_000, ge=1)
    counter_offsets: list[CounterOffsetConfig] = Field(
        default_factory=lambda: [
            CounterOffsetConfig(offset=80, label="standard (8+32+32+8)"),
            CounterOffsetConfig(offset=72, label="no_discriminator"),
            CounterOffsetConfig(offset=88, label="with_padding"),
            CounterOffsetConfig(offset=64, label="minimal"),
        ]
    )


class IndexingConfig(BaseSettings):
    """DAS indexing monitor configuration."""

    enabled: bool = Field(default=True)
    check_interval: float = Field(default=30.0, ge=0.0, le=600.0)
    max_attempts: int = Field(default=40, ge=1, le=1000)
    probe_timeout: float = Field(default=10.0, ge=0.1, le=120.0)
    completed_cache_size: int = Field(default=500, ge=1, le=100_000)


class WebhookConfig(BaseSettings):
    """Webhook delivery configuration."""

    retry_attempts: int = Field(default=3, ge=1, le=10)
    retry_delay: float = Field(default=1.0, ge=0.0, le=60.0)
    timeout: float = Field(default=10.0, ge=0.1, le=120.0)
    user_agent: str = Field(default=f"frappeur-webhook/{__version__}")
    signature_header: str = Field(default="X-Frappeur-Signature")


class BatchConfig(BaseSettings):
    """Batch mint limits."""

    max_items: int = Field(default=50, ge=1, le=500)
    item_delay: float = Field(default=2.0, ge=0.0, le=60.0)


class CollectionConfig(BaseModel):
    """Statically configured collection (tree + collection mint)."""

    id: str
    name: str
    symbol: str = Field(default="")
    tree_address: str
    collection_address: str
    status: str = Field(default="active")
    allow_minting: bool = Field(default=True)
    max_supply: Optional[int] = Field(default=None, ge=1)
    seller_fee_basis_points: int = Field(default=0, ge=0, le=10_000)


class FrappeurConfig(BaseSettings):
    """
    Frappeur configuration schema.

    Nested blocks map one-to-one onto pipeline components:
    chain -> SolanaChainClient, confirmation -> MintSubmissionEngine,
    leaf_index -> LeafIndexResolver, indexing -> IndexingMonitor,
    webhooks -> WebhookNotifier.
    """

    model_config = SettingsConfigDict(
        env_prefix="FRAPPEUR_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="allow",
    )

    environment: str = Field(default="production")

    # FastAPI
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8770, ge=1024, le=65535)
    api_reload: bool = Field(default=False)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = Field(default="info")

    # Persistence (in-memory store when unset)
    database_url: Optional[str] = Field(default=None)

    # Mint defaults
    default_recipient: Optional[str] = Field(default=None)

    chain: ChainConfig = Field(default_factory=ChainConfig)
    confirmation: ConfirmationConfig = Field(default_factory=ConfirmationConfig)
    leaf_index: LeafIndexConfig = Field(default_factory=LeafIndexConfig)
    indexing: IndexingConfig = Field(default_factory=IndexingConfig)
    webhooks: WebhookConfig = Field(default_factory=WebhookConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    collections: list[CollectionConfig] = Field(default_factory=list)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Environment variables override YAML values passed at init."""
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @computed_field
    @property
    def json_logs(self) -> bool:
        """Structured JSON logs only in production."""
        return self.environment == "production"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["debug", "info", "warning", "error", "critical"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"Invalid log_level. Must be one of: {allowed}")
        return v_lower

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate deployment environment."""
        allowed = ["production", "development", "test"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"Invalid environment. Must be one of: {allowed}")
        return v_lower


def load_config(
    env: Optional[str] = None,
    config_file: Optional[str] = None,
) -> FrappeurConfig:
    """
    Load configuration from .env and YAML files.

    Priority: Environment variables > environment-specific YAML > default YAML

    Args:
        env: Environment name (defaults to ENV variable, then production)
        config_file: Optional YAML filename override

    Returns:
        FrappeurConfig instance
    """
    environment = env or os.getenv("ENV", "production")

    config_map = {
        "production": (".env.production", "production.yaml"),
        "development": (".env.development", "development.yaml"),
        "test": (".env.test", "test.yaml"),
    }
    env_file, default_config_file = config_map.get(
        environment, (".env.production", "production.yaml")
    )

    current_file = Path(__file__).resolve()
    project_root = current_file.parent.parent.parent.parent
    config_dir = project_root / "config"

    env_file_path = project_root / env_file
    if env_file_path.exists():
        load_dotenv(env_file_path, override=False)

    default_config_path = config_dir / "default.yaml"
    merged_config: dict = {}

    if default_config_path.exists():
        with open(default_config_path, "r") as f:
            loaded = yaml.safe_load(f)
            if loaded:
                merged_config = loaded

    if config_file is None:
        config_file = os.getenv("FRAPPEUR_CONFIG") or default_config_file

    env_config_path = config_dir / config_file
    if env_config_path.exists():
        with open(env_config_path, "r") as f:
            loaded = yaml.safe_load(f)
            if loaded:
                for key, value in loaded.items():
                    if isinstance(value, dict) and isinstance(
                        merged_config.get(key), dict
                    ):
                        merged_config[key] = {**merged_config[key], **value}
                    else:
                        merged_config[key] = value

    merged_config.setdefault("environment", environment)
    return FrappeurConfig(**merged_config)


# Global settings instance
_settings: Optional[FrappeurConfig] = None


def get_settings() -> FrappeurConfig:
    """
    Get singleton settings instance.

    Returns:
        FrappeurConfig instance
    """
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings
