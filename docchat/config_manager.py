"""Runtime configuration backed by a JSON file"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from docchat.config import (
    CONFIG_FILE,
    CHAT_MODEL,
    DEFAULT_EMBEDDING_MODEL,
    DEFAULT_SYSTEM_PROMPT,
)

logger = logging.getLogger(__name__)


class ConfigManager:
    """Centralized configuration management"""

    DEFAULT_CONFIG: Dict[str, Any] = {
        'model': CHAT_MODEL,
        'embedding_model': DEFAULT_EMBEDDING_MODEL,
        'chunk_size': 1000,
        'chunk_overlap': 200,
        'top_k': 5,
        'temperature': 0.3,
        'max_tokens': 500,
        'system_prompt': DEFAULT_SYSTEM_PROMPT,
        'total_queries': 0
    }

    # Counters are maintained by the server, not by clients
    READ_ONLY_KEYS = {'total_queries'}

    def __init__(self, config_file: Path = CONFIG_FILE):
        self.config_file = config_file
        self.config = self.DEFAULT_CONFIG.copy()
        self.load()

    def load(self) -> None:
        """Load configuration from file"""
        try:
            if self.config_file.exists():
                with open(self.config_file, 'r') as f:
                    self.config.update(json.load(f))
            else:
                self.save()
        except Exception as e:
            logger.error(f"Error loading config: {e}")

    def save(self) -> None:
        """Save configuration to file"""
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, 'w') as f:
                json.dump(self.config, f, indent=2)
        except Exception as e:
            logger.error(f"Error saving config: {e}")

    def get(self, key: str, default=None):
        """Get configuration value"""
        return self.config.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self.config)

    def update(self, **kwargs) -> List[str]:
        """Update configuration and return list of changed fields"""
        unknown = [key for key in kwargs if key not in self.DEFAULT_CONFIG or key in self.READ_ONLY_KEYS]
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        updates = {key: value for key, value in kwargs.items() if value is not None}
        merged = {**self.config, **updates}
        if merged['chunk_overlap'] >= merged['chunk_size']:
            raise ValueError("chunk_overlap must be smaller than chunk_size")

        changed = []
        for key, value in updates.items():
            if self.config.get(key) != value:
                self.config[key] = value
                changed.append(key)

        if changed:
            self.save()
            logger.info(f"Configuration updated: {changed}")

        return changed

    def increment_queries(self) -> None:
        """Increment query counter"""
        self.config['total_queries'] += 1
        self.save()
