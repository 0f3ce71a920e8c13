"""
Executor configuration definition.

Loads configuration from environment variables and provides a Pydantic model.
Uses pydantic-settings for type safety and defaults.
"""

import sys
from pydantic import Field
from runtimes.common.core.config import BaseAppConfig


class ExecutorConfig(BaseAppConfig):
    """
    Configuration management for the function executor.
    """

    # Server settings
    BIND_HOST: str = Field(default="0.0.0.0", description="Listen address")
    PORT: int = Field(default=3000, description="Listen port")

    # User code
    USER_CODE_PATH: str = Field(
        default="/usr/local/server/src/function", description="Directory holding user code"
    )
    OPEN_RUNTIMES_ENTRYPOINT: str = Field(
        default="main.py", description="Entrypoint file or module of the user function"
    )

    # Authentication (empty disables the check)
    OPEN_RUNTIMES_SECRET: str = Field(
        default="", description="Shared secret expected in x-open-runtimes-secret"
    )


# Load config as a singleton.
# pydantic-settings reads environment variables during instantiation.
try:
    config = ExecutorConfig()
except Exception as e:
    sys.stderr.write(f"Failed to load configuration: {e}\n")
    raise
