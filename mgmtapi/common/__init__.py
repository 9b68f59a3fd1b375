# Common utilities
from mgmtapi.common.crypto import CryptoUtils as CryptoUtils
from mgmtapi.common.logging_utils import setup_logger as setup_logger

__all__ = ["CryptoUtils", "setup_logger"]
