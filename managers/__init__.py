"""
Managers Package
================

Coordination layer for the Schematron validator.

Managers:
- FileManager: File system operations
"""

from .file_manager import FileManager

__all__ = [
    'FileManager',
]
