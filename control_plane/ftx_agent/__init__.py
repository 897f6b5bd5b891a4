"""FTX agent HTTP service package."""
from .config import AgentConfig, load_config

__all__ = ["AgentConfig", "load_config"]
