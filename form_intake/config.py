# ==============================================
# Configuration Management
# ==============================================
#
# PURPOSE:
#   Load and validate all configuration from environment
#   variables / .env file. Provides typed config objects
#   that are handed to the pipeline constructor.
#
# CLASSES:
# --------
# - MySQLConfig (dataclass)
#     host, port, user, password, database
#
# - MongoConfig (dataclass)
#     host, port, user, password, database
#
# - StorageConfig (dataclass)
#     backend: str            ("memory" | "mysql" | "mongo")
#     mysql: MySQLConfig
#     mongo: MongoConfig
#
# - NotificationConfig (dataclass)
#     transport: str          ("log" | "smtp" | "webhook")
#     smtp_host / smtp_port / smtp_user / smtp_password / smtp_sender
#     smtp_starttls: bool
#     webhook_url: str
#     timeout_seconds: float
#
# - AppConfig (dataclass)
#     email_notification: bool   (default True)
#     email_address: str         (default "")
#     max_retries: int           (default 3, >= 1)
#     retry_delay_ms: int        (default 1000, >= 0)
#     data_retention_days: int   (default 365, >= 0)
#     anomaly_threshold: float   (default 2.0, > 0)
#     default_form_name: str     (default "Default_Form")
#     analysis_suffix: str       (default "_Analysis")
#     classifier_class: str      (default "", dotted import path)
#     storage / notification
#     webhook_host / webhook_port / log_level
#
# FUNCTION:
# ---------
# - load_config(env_file=None) -> AppConfig
#     Load .env using python-dotenv, construct and validate AppConfig.
#     Every call builds a fresh object; nothing is cached at module level.
#
# USAGE:
# ------
#   from form_intake.config import load_config
#   config = load_config()
#   print(config.max_retries)
#   print(config.storage.mysql.host)
#
# ==============================================

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from form_intake.errors import ConfigError


STORAGE_BACKENDS = ("memory", "mysql", "mongo")
NOTIFIER_TRANSPORTS = ("log", "smtp", "webhook")


@dataclass
class MySQLConfig:
    """MySQL database configuration."""
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = "root"
    database: str = "form_intake"


@dataclass
class MongoConfig:
    """MongoDB database configuration."""
    host: str = "localhost"
    port: int = 27017
    user: Optional[str] = None
    password: Optional[str] = None
    database: str = "form_intake"


@dataclass
class StorageConfig:
    """Which tabular store backs the sinks."""
    backend: str = "memory"
    mysql: MySQLConfig = field(default_factory=MySQLConfig)
    mongo: MongoConfig = field(default_factory=MongoConfig)


@dataclass
class NotificationConfig:
    """How submission summaries are delivered."""
    transport: str = "log"
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_sender: str = "form-intake@localhost"
    smtp_starttls: bool = True
    webhook_url: str = ""
    timeout_seconds: float = 10.0


@dataclass
class AppConfig:
    """Main application configuration."""
    email_notification: bool = True
    email_address: str = ""
    max_retries: int = 3
    retry_delay_ms: int = 1000
    data_retention_days: int = 365
    anomaly_threshold: float = 2.0
    default_form_name: str = "Default_Form"
    analysis_suffix: str = "_Analysis"
    classifier_class: str = ""
    storage: StorageConfig = field(default_factory=StorageConfig)
    notification: NotificationConfig = field(default_factory=NotificationConfig)
    webhook_host: str = "0.0.0.0"
    webhook_port: int = 8000
    log_level: str = "INFO"

    def __post_init__(self):
        self.validate()

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay_ms / 1000.0

    def validate(self) -> None:
        """
        Check value ranges.

        Raises:
            ConfigError: If any value is out of its allowed range
        """
        if self.max_retries < 1:
            raise ConfigError(f"max_retries must be >= 1, got {self.max_retries}")
        if self.retry_delay_ms < 0:
            raise ConfigError(f"retry_delay_ms must be >= 0, got {self.retry_delay_ms}")
        if self.data_retention_days < 0:
            raise ConfigError(f"data_retention_days must be >= 0, got {self.data_retention_days}")
        if self.anomaly_threshold <= 0:
            raise ConfigError(f"anomaly_threshold must be > 0, got {self.anomaly_threshold}")
        if not self.default_form_name:
            raise ConfigError("default_form_name must not be empty")
        if self.storage.backend not in STORAGE_BACKENDS:
            raise ConfigError(
                f"Unknown storage backend '{self.storage.backend}' "
                f"(expected one of {', '.join(STORAGE_BACKENDS)})"
            )
        if self.notification.transport not in NOTIFIER_TRANSPORTS:
            raise ConfigError(
                f"Unknown notifier '{self.notification.transport}' "
                f"(expected one of {', '.join(NOTIFIER_TRANSPORTS)})"
            )
        if self.notification.transport == "webhook" and not self.notification.webhook_url:
            raise ConfigError("NOTIFY_WEBHOOK_URL is required when NOTIFIER=webhook")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got '{raw}'") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, str(default))
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got '{raw}'") from None


def load_config(env_file: Optional[str] = None) -> AppConfig:
    """
    Load configuration from environment variables / .env file.

    Args:
        env_file: Optional path to a .env file. Defaults to the .env in
                  the project root. Variables already set in the process
                  environment take precedence.

    Returns:
        AppConfig: Validated application configuration

    Raises:
        ConfigError: If a value cannot be parsed or is out of range
    """
    env_path = Path(env_file) if env_file else Path(__file__).parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)

    # Build MySQL configuration
    mysql_config = MySQLConfig(
        host=os.getenv("MYSQL_HOST", "localhost"),
        port=_env_int("MYSQL_PORT", 3306),
        user=os.getenv("MYSQL_USER", "root"),
        password=os.getenv("MYSQL_PASSWORD", "root"),
        database=os.getenv("MYSQL_DATABASE", "form_intake")
    )

    # Build MongoDB configuration
    mongo_config = MongoConfig(
        host=os.getenv("MONGO_HOST", "localhost"),
        port=_env_int("MONGO_PORT", 27017),
        user=os.getenv("MONGO_USER") or None,
        password=os.getenv("MONGO_PASSWORD") or None,
        database=os.getenv("MONGO_DATABASE", "form_intake")
    )

    storage_config = StorageConfig(
        backend=os.getenv("STORAGE_BACKEND", "memory").strip().lower(),
        mysql=mysql_config,
        mongo=mongo_config
    )

    notification_config = NotificationConfig(
        transport=os.getenv("NOTIFIER", "log").strip().lower(),
        smtp_host=os.getenv("SMTP_HOST", "localhost"),
        smtp_port=_env_int("SMTP_PORT", 587),
        smtp_user=os.getenv("SMTP_USER") or None,
        smtp_password=os.getenv("SMTP_PASSWORD") or None,
        smtp_sender=os.getenv("SMTP_SENDER", "form-intake@localhost"),
        smtp_starttls=_env_bool("SMTP_STARTTLS", True),
        webhook_url=os.getenv("NOTIFY_WEBHOOK_URL", ""),
        timeout_seconds=_env_float("NOTIFY_TIMEOUT_SECONDS", 10.0)
    )

    # Build main application configuration
    return AppConfig(
        email_notification=_env_bool("EMAIL_NOTIFICATION", True),
        email_address=os.getenv("EMAIL_ADDRESS", ""),
        max_retries=_env_int("MAX_RETRIES", 3),
        retry_delay_ms=_env_int("RETRY_DELAY_MS", 1000),
        data_retention_days=_env_int("DATA_RETENTION_DAYS", 365),
        anomaly_threshold=_env_float("ANOMALY_THRESHOLD", 2.0),
        default_form_name=os.getenv("DEFAULT_FORM_NAME", "Default_Form"),
        analysis_suffix=os.getenv("ANALYSIS_SUFFIX", "_Analysis"),
        classifier_class=os.getenv("CLASSIFIER_CLASS", ""),
        storage=storage_config,
        notification=notification_config,
        webhook_host=os.getenv("WEBHOOK_HOST", "0.0.0.0"),
        webhook_port=_env_int("WEBHOOK_PORT", 8000),
        log_level=os.getenv("LOG_LEVEL", "INFO")
    )
