"""SpanSeek core modules."""

from spanseek.core.config import load_config, save_config, get_config_path, get_search_config

__all__ = ["load_config", "save_config", "get_config_path", "get_search_config"]
