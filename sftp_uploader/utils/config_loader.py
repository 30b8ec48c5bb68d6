"""
Centralized configuration loading for the uploader.

Provides consistent path resolution for config.yaml and turns the loaded
preferences into an UploadJob.
"""

import os
import yaml
import logging
from typing import Dict, Any, Optional
from pathlib import Path

from ..upload.models import DEFAULT_CHUNK_SIZE, UploadJob

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = 'SFTP_UPLOADER_CONFIG_PATH'

DEFAULTS: Dict[str, Any] = {
    'username': 'MISSING_USERNAME',
    'server_address': 'MISSING_SERVER_ADDRESS',
    'server_path': 'MISSING_SERVER_PATH',
    'port': 22,
    'chunk_size': DEFAULT_CHUNK_SIZE,
    'connect_timeout': None,
    'public_key_path': '~/.ssh/id_rsa.pub',
    'private_key_path': '~/.ssh/id_rsa',
    'key_passphrase': None,
    'log_dir': None,
}


class ConfigLoader:
    """Configuration loader with consistent path resolution."""
    
    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the config loader with an optional path override.
        
        Args:
            config_path: Optional path to config file (defaults to config.yaml)
        """
        self.config_path = self._resolve_config_path(config_path)
    
    def _resolve_config_path(self, config_path: Optional[str]) -> str:
        """
        Resolve the configuration file path.
        
        Priority order:
        1. Provided config_path parameter
        2. SFTP_UPLOADER_CONFIG_PATH environment variable
        3. config.yaml in current working directory
        4. config.yaml relative to project root
        """
        if config_path:
            return config_path
        
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path and os.path.exists(env_path):
            return env_path
        
        cwd_path = os.path.join(os.getcwd(), 'config.yaml')
        if os.path.exists(cwd_path):
            return cwd_path
        
        # Project root is 2 levels up from this file
        project_root = Path(__file__).parent.parent.parent
        project_config = project_root / 'config.yaml'
        if project_config.exists():
            return str(project_config)
        
        return 'config.yaml'
    
    def load_config(self) -> Dict[str, Any]:
        """
        Load the YAML configuration file.
        
        Returns:
            Dict containing the configuration data
            
        Raises:
            FileNotFoundError: If the configuration file cannot be found
            yaml.YAMLError: If the configuration file is invalid YAML
        """
        try:
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f)
                logger.info(f"Loaded configuration from: {self.config_path}")
                return config or {}
        except FileNotFoundError:
            logger.error(f"Configuration file not found: {self.config_path}")
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in configuration file {self.config_path}: {e}")
            raise
    
    def load_preferences(self, required: bool = False) -> Dict[str, Any]:
        """
        Load the upload preferences merged over the defaults.
        
        Missing required fields keep their MISSING_* placeholders so the
        upload run can report them by name.
        
        Args:
            required: Raise when the config file is absent instead of
                falling back to the defaults
        """
        try:
            config = self.load_config()
        except FileNotFoundError:
            if required:
                raise
            logger.warning(f"Using default preferences, {self.config_path} not found")
            config = {}
        
        preferences = dict(DEFAULTS)
        for key, value in config.items():
            if key in DEFAULTS and value is not None:
                preferences[key] = value
            elif key not in DEFAULTS:
                logger.warning(f"Ignoring unknown configuration key: {key}")
        return preferences


def build_job(local_dir: str, preferences: Dict[str, Any]) -> UploadJob:
    """Create an UploadJob from loaded preferences."""
    timeout = preferences.get('connect_timeout')
    return UploadJob(
        local_dir=local_dir,
        server_address=str(preferences['server_address']),
        server_path=str(preferences['server_path']),
        username=str(preferences['username']),
        port=int(preferences['port']),
        chunk_size=int(preferences['chunk_size']),
        connect_timeout=float(timeout) if timeout is not None else None,
        public_key_path=preferences['public_key_path'],
        private_key_path=preferences['private_key_path'],
        key_passphrase=preferences.get('key_passphrase'),
    )


def load_preferences(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load preferences using a fresh loader, so environment changes are picked up.
    
    Args:
        config_path: Optional custom path to config file
    """
    return ConfigLoader(config_path=config_path).load_preferences(required=bool(config_path))
