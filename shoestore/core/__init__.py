# Core modules

from .config import Settings, get_settings
from .locks import KeyedLock, account_locks

__all__ = ["Settings", "get_settings", "KeyedLock", "account_locks"]
