from .loader import get_config
from .validator import ConfigValidationError, validate_config

__all__ = ["get_config", "ConfigValidationError", "validate_config"]
