"""
Configuration management system with environment variable loading and validation.
"""

import logging
from typing import Annotated, Optional, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
DEFAULT_AXE_SCRIPT_URL = "https://cdnjs.cloudflare.com/ajax/libs/axe-core/4.7.2/axe.min.js"


def _split_csv(v):
    """Parse a comma-separated string or list into a list of strings."""
    if v is None:
        return []
    if isinstance(v, str):
        return [item.strip() for item in v.split(',') if item.strip()]
    if isinstance(v, (list, tuple)):
        return list(v)
    return []


class APIConfig(BaseSettings):
    """API server configuration."""
    model_config = SettingsConfigDict(env_prefix='API_', extra='ignore')

    host: str = Field(default='0.0.0.0')
    port: int = Field(default=8000, ge=1, le=65535)
    workers: int = Field(default=1, ge=1, le=32)
    reload: bool = Field(default=False)
    cors_origins: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ['*'])

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        return _split_csv(v)


class RateLimitConfig(BaseSettings):
    """
    Admission control configuration.

    The counter lives in process memory, so these limits only hold for a
    single-instance deployment.
    """
    model_config = SettingsConfigDict(env_prefix='RATE_LIMIT_', extra='ignore')

    requests_per_minute: int = Field(default=10, ge=1, le=10000)
    window_seconds: float = Field(default=60.0, gt=0, le=3600)
    sweep_interval_seconds: float = Field(default=300.0, gt=0, le=86400)


class ScanConfig(BaseSettings):
    """Browser and rule engine configuration."""
    model_config = SettingsConfigDict(env_prefix='SCAN_', extra='ignore')

    navigation_timeout_ms: int = Field(default=45000, ge=1000, le=300000)
    navigation_timeout_step_ms: int = Field(default=15000, ge=0, le=120000)
    min_navigation_timeout_ms: int = Field(default=5000, ge=500, le=120000)
    script_load_timeout_ms: int = Field(default=10000, ge=500, le=120000)
    audit_timeout_ms: int = Field(default=60000, ge=1000, le=600000)
    browser_launch_timeout_ms: int = Field(default=60000, ge=1000, le=300000)
    viewport_width: int = Field(default=1280, ge=320, le=3840)
    viewport_height: int = Field(default=720, ge=240, le=2160)
    user_agent: str = Field(default=DEFAULT_USER_AGENT)
    headless: bool = Field(default=True)
    browser_args: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: [
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
        ]
    )
    stealth: bool = Field(default=True)
    axe_script_url: str = Field(default=DEFAULT_AXE_SCRIPT_URL)
    axe_script_path: Optional[str] = Field(default=None)
    rule_tags: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["wcag2aa", "wcag21aa"])
    max_concurrent_scans: int = Field(default=5, ge=1, le=50)

    @field_validator('browser_args', 'rule_tags', mode='before')
    @classmethod
    def parse_lists(cls, v):
        """Allow comma-separated values in environment variables."""
        return _split_csv(v)

    def navigation_timeouts(self) -> List[int]:
        """
        Per-tier navigation timeouts in milliseconds.

        Each tier gets the previous tier's timeout minus the step, never
        dropping below ``min_navigation_timeout_ms``.
        """
        timeouts = []
        current = self.navigation_timeout_ms
        for _ in range(3):
            timeouts.append(max(current, self.min_navigation_timeout_ms))
            current -= self.navigation_timeout_step_ms
        return timeouts


class EnrichmentConfig(BaseSettings):
    """Text generation (Gemini) configuration."""
    model_config = SettingsConfigDict(env_prefix='GEMINI_', extra='ignore')

    api_key: Optional[str] = Field(default=None)
    model: str = Field(default='gemini-2.0-flash')
    timeout_seconds: float = Field(default=30.0, gt=0, le=300)
    max_concurrent_requests: int = Field(default=5, ge=1, le=50)
    enabled: bool = Field(default=True)

    @property
    def is_configured(self) -> bool:
        return bool(self.enabled and self.api_key)


class MonitoringConfig(BaseSettings):
    """Monitoring and observability configuration."""
    model_config = SettingsConfigDict(env_prefix='', extra='ignore')

    log_level: str = Field(default='INFO')
    log_format: str = Field(default='json')
    sentry_dsn: Optional[str] = Field(None)
    enable_metrics: bool = Field(default=True)

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if v.upper() == 'WARN':
            return 'WARNING'
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class Config(BaseSettings):
    """Main configuration class."""
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

    # Environment
    environment: str = Field(default='development')
    debug: bool = Field(default=False)

    # Sub-configurations
    api: APIConfig = Field(default_factory=APIConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    enrichment: EnrichmentConfig = Field(default_factory=EnrichmentConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v):
        """Validate environment."""
        valid_envs = {'development', 'staging', 'production', 'test'}
        if v.lower() not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of {valid_envs}")
        return v.lower()

    def validate_config(self) -> List[str]:
        """
        Validate configuration and return list of warnings/errors.

        Returns:
            List of validation messages
        """
        messages = []

        if self.environment == 'production' and self.debug:
            messages.append("WARNING: Debug mode enabled in production")

        if not self.enrichment.api_key:
            messages.append(
                "WARNING: GEMINI_API_KEY not set, AI explanations will use fallback text"
            )

        timeouts = self.scan.navigation_timeouts()
        last_tier = self.scan.navigation_timeout_ms - 2 * self.scan.navigation_timeout_step_ms
        if last_tier < self.scan.min_navigation_timeout_ms:
            messages.append(
                f"WARNING: Navigation tiers clamped to minimum timeout: {timeouts}"
            )

        if self.scan.script_load_timeout_ms >= self.scan.audit_timeout_ms:
            messages.append(
                "ERROR: SCAN_SCRIPT_LOAD_TIMEOUT_MS must be lower than SCAN_AUDIT_TIMEOUT_MS"
            )

        return messages


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance, initializing it on first use."""
    global _config
    if _config is None:
        return init_config()
    return _config


def init_config(env_file: Optional[str] = None) -> Config:
    """
    Initialize the global configuration instance.

    Args:
        env_file: Path to .env file (optional)

    Returns:
        Initialized Config instance
    """
    global _config

    if env_file:
        config = Config(_env_file=env_file)
    else:
        config = Config()

    # Validate configuration
    validation_messages = config.validate_config()
    for msg in validation_messages:
        if msg.startswith('ERROR'):
            logger.error(msg)
            raise ValueError(msg)
        else:
            logger.warning(msg)

    _config = config
    logger.info(f"Configuration initialized for environment: {_config.environment}")
    return _config


def reload_config() -> Config:
    """Reload configuration from the environment."""
    global _config
    _config = None
    return init_config()
