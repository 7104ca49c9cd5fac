"""Configuration management."""

from .config import Config, DestinationConfig, GerritConfig, LoggingConfig

__all__ = ['Config', 'DestinationConfig', 'GerritConfig', 'LoggingConfig']
