from .logger import get_logger, log_auth_event

__all__ = ["get_logger", "log_auth_event"]
