from .log import logger

__all__ = ["logger"]
