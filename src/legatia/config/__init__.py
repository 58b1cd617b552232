"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_int_env, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .policy import (
    DEFAULT_CLAIM_RETENTION_DAYS,
    DEFAULT_INVITATION_RETENTION_DAYS,
    DEFAULT_MATCH_THRESHOLD,
    DEFAULT_SEARCH_RESULT_LIMIT,
    WorkflowPolicy,
    get_workflow_policy,
)
from .remote import PRINCIPAL_HEADER, RemoteConfig, get_remote_config
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_storage_config,
)

__all__ = [
    "DEFAULT_CLAIM_RETENTION_DAYS",
    "DEFAULT_INVITATION_RETENTION_DAYS",
    "DEFAULT_MATCH_THRESHOLD",
    "DEFAULT_SEARCH_RESULT_LIMIT",
    "PRINCIPAL_HEADER",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "RateLimit",
    "RemoteConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "WorkflowPolicy",
    "configure_logging",
    "get_database_config",
    "get_database_uri",
    "get_remote_config",
    "get_storage_config",
    "get_workflow_policy",
    "optional_int_env",
    "require_env_vars",
]
