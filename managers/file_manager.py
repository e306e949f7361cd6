"""
File Manager
============

Manages file system operations.
Follows SRP: Only handles file system utilities.
"""

import os
import glob
from typing import List


class FileManager:
    """
    Manager responsible for file system operations.

    Follows SRP: Only handles file operations.
    """

    def ensure_directory(self, directory: str) -> None:
        """
        Ensure directory exists, create if necessary.

        Args:
            directory: Directory path
        """
        if directory:
            os.makedirs(directory, exist_ok=True)

    def directory_exists(self, directory: str) -> bool:
        """
        Check if directory exists.

        Args:
            directory: Directory path

        Returns:
            True if directory exists
        """
        return os.path.exists(directory) and os.path.isdir(directory)

    def read_text(self, filepath: str) -> str:
        """
        Read a UTF-8 text file (a leading byte order mark is dropped).

        Args:
            filepath: Path to file

        Returns:
            File content
        """
        with open(filepath, "r", encoding="utf-8-sig") as f:
            return f.read()

    def write_text(self, filepath: str, content: str) -> str:
        """
        Write text to a UTF-8 file, creating parent directories.

        Args:
            filepath: Destination path
            content: Text to write

        Returns:
            Path written
        """
        self.ensure_directory(os.path.dirname(os.path.abspath(filepath)))
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(content)
        return filepath

    def list_files(
        self,
        directory: str,
        pattern: str = "*"
    ) -> List[str]:
        """
        List files in directory matching pattern.

        Args:
            directory: Directory to search
            pattern: Glob pattern (default: all files)

        Returns:
            Sorted list of matching file paths
        """
        if not self.directory_exists(directory):
            return []

        search_pattern = os.path.join(directory, pattern)
        return sorted(p for p in glob.glob(search_pattern) if os.path.isfile(p))
