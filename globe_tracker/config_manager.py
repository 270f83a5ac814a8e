import logging
import os

import yaml

logger = logging.getLogger(__name__)


class ConfigManager:
    def __init__(self, filepath="config.yaml"):
        self.filepath = filepath
        self.config = {
            'tle_group': "stations",
            'tle_url': None,
            'cache_dir': "./tle_cache",
            'cache_max_age_hours': 24,
            'transition_ms': 1000,
            'snap_threshold_ms': 1000,
            'fps': 30,
            'web_host': "0.0.0.0",
            'web_port': 8080,
            'real_time': False,
            'selection': [],
        }
        self.load()

    def load(self):
        if not os.path.exists(self.filepath):
            return

        try:
            with open(self.filepath, 'r') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Error loading config %s: %s", self.filepath, e)
            return

        if isinstance(data, dict):
            self.config.update(data)
        elif data is not None:
            logger.warning("Ignoring config %s: expected a mapping", self.filepath)

    def get(self, key, default=None):
        return self.config.get(key, default)

    def save(self, new_config_values=None):
        if new_config_values:
            self.config.update(new_config_values)

        try:
            with open(self.filepath, 'w') as f:
                yaml.dump(self.config, f, default_flow_style=False)
        except OSError as e:
            logger.warning("Error saving config %s: %s", self.filepath, e)
            return False
        logger.info("Configuration saved to %s", self.filepath)
        return True
