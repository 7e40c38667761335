"""Core types: results, errors and configuration."""

from .config import PublishConfig, load_config, load_config_or_default
from .errors import ErrorCode, PublishError
from .result import Err, Ok, Result

__all__ = [
    # config
    "PublishConfig",
    "load_config",
    "load_config_or_default",
    # errors
    "ErrorCode",
    "PublishError",
    # result
    "Err",
    "Ok",
    "Result",
]
