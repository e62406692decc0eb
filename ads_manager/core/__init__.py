# Core module
from ads_manager.core.config import settings

__all__ = ["settings"]
