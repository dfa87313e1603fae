"""Local data directory: account stores and diagnostic logs."""
from .data_directory import DataDirectory

__all__ = [
    'DataDirectory',
]
