import os

from runtimes.common.core.logging_config import setup_logging as common_setup_logging

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(os.path.dirname(__file__)), "logging.yml")


def setup_logging(config_path: str = "", log_level: str = ""):
    """
    Load the YAML config and initialize logging.
    Falls back to the logging.yml bundled with the executor.
    """
    path = config_path or os.getenv("LOG_CONFIG_PATH") or DEFAULT_CONFIG_PATH
    common_setup_logging(path, log_level)
