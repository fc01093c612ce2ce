from .manager import ConfigManager, get_config, set_config
from .models import AppConfig

__all__ = ["ConfigManager", "AppConfig", "get_config", "set_config"]
