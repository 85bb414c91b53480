"""Core types: results, configuration, exit codes."""

from .config import Config, ConfigError, RetryPolicy, Settings, load_config_from_env, load_settings
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    # config
    "Config",
    "ConfigError",
    "RetryPolicy",
    "Settings",
    "load_config_from_env",
    "load_settings",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
]
