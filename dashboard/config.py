"""Configuration module with environment variable validation.

This module provides configuration management for the token quota
dashboard, loading settings from environment variables and validating
required values.
"""

import os
from dataclasses import dataclass
from typing import Optional
from functools import lru_cache


STORE_BACKENDS = ("dynamodb", "memory")


class ConfigurationError(Exception):
    """Raised when a required configuration variable is missing or invalid."""

    def __init__(self, variable_name: str, message: Optional[str] = None):
        self.variable_name = variable_name
        if message:
            super().__init__(f"{variable_name}: {message}")
        else:
            super().__init__(f"Required environment variable '{variable_name}' is missing or empty")


@dataclass(frozen=True)
class AppConfig:
    """Application configuration loaded from environment variables.

    Attributes:
        aws_region: The AWS region for DynamoDB (required for the dynamodb backend)
        store_backend: Which store implementation serves reads ("dynamodb" or "memory")
        usage_table_name: DynamoDB table holding token usage events
        policy_table_name: DynamoDB table holding policies and their token limits
        user_table_name: DynamoDB table holding users and their policy assignment
        log_level: Log level name for the application logger
        top_policy_count: How many policies the usage target widget ranks
    """

    aws_region: str = "us-east-1"
    store_backend: str = "dynamodb"
    usage_table_name: str = "dashboard-token-usage"
    policy_table_name: str = "dashboard-policies"
    user_table_name: str = "dashboard-users"
    log_level: str = "INFO"
    top_policy_count: int = 3

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load configuration from environment variables.

        Returns:
            AppConfig instance with values from environment

        Raises:
            ConfigurationError: If a required environment variable is missing or invalid
        """
        store_backend = os.environ.get("STORE_BACKEND", "dynamodb").strip().lower()
        if store_backend not in STORE_BACKENDS:
            raise ConfigurationError(
                "STORE_BACKEND", f"must be one of {', '.join(STORE_BACKENDS)}"
            )

        aws_region = os.environ.get("AWS_REGION", "").strip()
        if not aws_region:
            # The in-memory backend never talks to AWS
            if store_backend == "dynamodb":
                raise ConfigurationError("AWS_REGION")
            aws_region = "us-east-1"

        values = {
            "aws_region": aws_region,
            "store_backend": store_backend,
        }

        # Optional variables with defaults
        values["usage_table_name"] = os.environ.get(
            "USAGE_TABLE_NAME", "dashboard-token-usage"
        ).strip()
        values["policy_table_name"] = os.environ.get(
            "POLICY_TABLE_NAME", "dashboard-policies"
        ).strip()
        values["user_table_name"] = os.environ.get(
            "USER_TABLE_NAME", "dashboard-users"
        ).strip()
        values["log_level"] = os.environ.get("LOG_LEVEL", "INFO").strip().upper()

        top_count = os.environ.get("TOP_POLICY_COUNT", "3").strip()
        try:
            values["top_policy_count"] = int(top_count)
        except ValueError:
            raise ConfigurationError("TOP_POLICY_COUNT", "must be an integer")
        if values["top_policy_count"] <= 0:
            raise ConfigurationError("TOP_POLICY_COUNT", "must be positive")

        return cls(**values)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Get the application configuration (cached).

    Returns:
        AppConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    return AppConfig.from_env()
