from pathlib import Path
from typing import Callable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from runtimes.executor.config import ExecutorConfig
from runtimes.executor.main import create_app

FUNCTIONS_DIR = Path(__file__).parent / "fixtures" / "functions"


def make_config(entrypoint: str, secret: str = "") -> ExecutorConfig:
    return ExecutorConfig(
        _env_file=None,
        USER_CODE_PATH=str(FUNCTIONS_DIR),
        OPEN_RUNTIMES_ENTRYPOINT=entrypoint,
        OPEN_RUNTIMES_SECRET=secret,
    )


@pytest.fixture
def make_app() -> Callable[..., FastAPI]:
    """Build an executor app serving the given fixture entrypoint."""

    def factory(entrypoint: str, secret: str = "") -> FastAPI:
        return create_app(make_config(entrypoint, secret))

    return factory


@pytest.fixture
def make_client(make_app) -> Callable[..., TestClient]:
    def factory(entrypoint: str, secret: str = "") -> TestClient:
        return TestClient(make_app(entrypoint, secret), raise_server_exceptions=False)

    return factory
