"""
Run Package

Configuration loading and logging setup.

Exported:
    Config:        INI-backed configuration
    setup_logging: Configure the root logger
"""

from evorep.run.config import Config, setup_logging

__all__ = ['Config',
           'setup_logging']
