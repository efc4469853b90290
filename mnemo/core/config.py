import os
from typing import Any, Dict, Optional

from dotenv import dotenv_values


def _optional_float(value: Optional[str]) -> Optional[float]:
    return float(value) if value not in (None, "") else None


class Config:
    """Configuration manager that loads settings from environment file."""

    def __init__(self, config_path: str = "config.env"):
        self.config: Dict[str, Any] = {}
        self._load_config(config_path)

    def _load_config(self, config_path: str) -> None:
        """Load configuration from environment file and set defaults."""
        env_vars = {}
        if os.path.exists(config_path):
            # Load into a temporary dict to avoid polluting the global environment
            env_vars = dotenv_values(config_path)

        def get_config_value(key: str, default: Optional[str]) -> Optional[str]:
            """Get config value from file-specific environment or default."""
            return env_vars.get(key) or os.getenv(key) or default

        self.config = {
            # Memory configuration
            "MEMORY_DIR": get_config_value("MEMORY_DIR", "data/memory"),
            "MEMORY_STORE_NAME": get_config_value("MEMORY_STORE_NAME", "rag-db-v3"),
            "MEMORY_EMBEDDING_MODEL": get_config_value("MEMORY_EMBEDDING_MODEL", "sentence-transformers/all-MiniLM-L6-v2"),
            "MEMORY_DISTANCE_METRIC": get_config_value("MEMORY_DISTANCE_METRIC", "cosine").lower(),  # cosine, l2
            "MEMORY_CHUNK_SIZE": int(get_config_value("MEMORY_CHUNK_SIZE", "1024")),
            "MEMORY_CHUNK_OVERLAP": int(get_config_value("MEMORY_CHUNK_OVERLAP", "100")),
            "MEMORY_MAX_SEARCH_RESULTS": int(get_config_value("MEMORY_MAX_SEARCH_RESULTS", "5")),
            "MEMORY_MAX_DISTANCE": _optional_float(get_config_value("MEMORY_MAX_DISTANCE", None)),
            # Model configuration
            "MODEL_PATH": get_config_value("MODEL_PATH", None),
            "MODEL_CACHE_DIR": get_config_value("MODEL_CACHE_DIR", "models"),
            "MODEL_CONTEXT": int(get_config_value("MODEL_CONTEXT", "8192")),
            "MODEL_GPU_LAYERS": int(get_config_value("MODEL_GPU_LAYERS", "-1")),
            "MODEL_NATIVE_TOOLS": get_config_value("MODEL_NATIVE_TOOLS", "false").lower() == "true",
            "DEVICE": get_config_value("DEVICE", "auto"),  # auto, cpu, cuda, mps
            # Generation parameters
            "TEMPERATURE": float(get_config_value("TEMPERATURE", "0.7")),
            "MAX_TOKENS": int(get_config_value("MAX_TOKENS", "512")),
            # Chat configuration
            "CHAT_SYSTEM_PROMPT": get_config_value("CHAT_SYSTEM_PROMPT", None),
            "CHAT_HISTORY_WINDOW": int(get_config_value("CHAT_HISTORY_WINDOW", "20")),
            # Logging configuration
            "LOG_LEVEL": get_config_value("LOG_LEVEL", "INFO").upper(),
        }

        os.makedirs(self.config["MEMORY_DIR"], exist_ok=True)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value with optional default."""
        return self.config.get(key, default)

    def __getitem__(self, key: str) -> Any:
        """Get configuration value using bracket notation."""
        return self.config[key]
