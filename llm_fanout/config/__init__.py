"""Configuration management for fan-out runs"""

from .provider_configs import ProviderConfig, ProviderConfigs
from .run_settings import RunSettings
from .targets import parse_target, load_targets

__all__ = ['ProviderConfig', 'ProviderConfigs', 'RunSettings', 'parse_target', 'load_targets']
