#!/usr/bin/env -S python3 -B -u
"""
Configuration loader for the home network planner.

Provides centralized configuration loading for all components.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, List

from .exceptions import ConfigurationError
from .models import is_valid_subnet


DEFAULT_SUBNETS = [
    '192.168.0.0',
    '192.168.1.0',
    '192.168.2.0',
    '192.168.31.0',
    '192.168.50.0',
    '10.0.0.0',
]


def load_hnet_config() -> Dict[str, Any]:
    """
    Load planner configuration with proper precedence.

    Configuration file location precedence:
    1. Environment variable HNET_CONF (if set)
    2. ~/hnet.yaml (user's home directory)
    3. ./hnet.yaml (current directory)

    Returns:
        Dictionary containing configuration values
    """
    defaults = {
        'subnets': list(DEFAULT_SUBNETS),
        'view_mode': 'topology',
        'verbose_level': 0,
        'layout': {},
        'storage': {},
        'node_defaults': {},
    }

    config_files = []

    env_config = os.environ.get('HNET_CONF')
    if env_config:
        config_files.append(Path(env_config))

    config_files.extend([
        Path.home() / 'hnet.yaml',
        Path('./hnet.yaml')
    ])

    config = defaults.copy()

    for config_file in config_files:
        if config_file.exists():
            try:
                with open(config_file, 'r', encoding='utf-8') as f:
                    file_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError):
                # Continue to next file if current one fails
                continue

            if not isinstance(file_config, dict):
                raise ConfigurationError(
                    "Configuration file must contain a mapping",
                    config_file=str(config_file)
                )
            config.update(file_config)
            config['_source'] = str(config_file)
            break

    return config


def get_subnet_choices(config: Dict[str, Any] = None) -> List[str]:
    """
    Get the closed list of selectable /24 subnets.

    Returns:
        List of subnet network addresses, in configured order

    Raises:
        ConfigurationError: If an entry is not a /24 network address
    """
    if config is None:
        config = load_hnet_config()

    subnets = config.get('subnets') or DEFAULT_SUBNETS
    choices = []
    for subnet in subnets:
        subnet = str(subnet).split('/')[0]
        if not is_valid_subnet(subnet):
            raise ConfigurationError(
                f"Invalid subnet choice: {subnet}",
                config_file=config.get('_source')
            )
        if subnet not in choices:
            choices.append(subnet)
    return choices


def get_layout_config(config: Dict[str, Any] = None) -> Dict[str, Any]:
    """
    Get automatic layout settings.

    Returns:
        Dictionary with direction, node box size and separations
    """
    if config is None:
        config = load_hnet_config()

    defaults = {
        'direction': 'TB',
        'node_width': 200,
        'node_height': 100,
        'rank_sep': 50,
        'node_sep': 50
    }

    result = defaults.copy()
    result.update(config.get('layout') or {})
    return result


def get_storage_config(config: Dict[str, Any] = None) -> Dict[str, Any]:
    """
    Get topology storage settings.

    Returns:
        Dictionary with storage directory and autosave flag
    """
    if config is None:
        config = load_hnet_config()

    defaults = {
        'directory': str(Path.home() / '.hnet'),
        'autosave': True
    }

    result = defaults.copy()
    result.update(config.get('storage') or {})

    # Override with environment variable if set
    data_dir = os.environ.get('HNET_DATA')
    if data_dir:
        result['directory'] = data_dir

    return result


def get_node_defaults(config: Dict[str, Any] = None) -> Dict[str, Any]:
    """
    Get field defaults for newly placed devices.

    Returns:
        Dictionary with ip_suffix, router_mode and terminal_subtype
    """
    if config is None:
        config = load_hnet_config()

    defaults = {
        'ip_suffix': '1',
        'router_mode': 'dial',
        'terminal_subtype': 'laptop'
    }

    result = defaults.copy()
    result.update(config.get('node_defaults') or {})
    result['ip_suffix'] = str(result['ip_suffix'])
    return result
