from .config import ResearchConfig, set_default_config, get_default_config, setup_logging

__all__ = ["ResearchConfig", "set_default_config", "get_default_config", "setup_logging"]
