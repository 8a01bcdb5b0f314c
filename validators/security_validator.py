"""
Security Validator
=================

Path checks applied before the builder reads a content file or writes a
template. Content repositories are shared between teams, so every file is
checked for type, size and readability before it reaches the YAML parser, and
output names are sanitised before anything is written.
"""

import os
import logging
import re
from pathlib import Path
from typing import Iterable, Optional, Tuple

from config import MAX_FILE_SIZE, SUPPORTED_EXTENSIONS

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARACTERS = re.compile(r'[<>:"|?*\x00-\x1f]')


class SecurityValidator:
    """
    Static validation helpers for content and output paths.

    Each method returns a (is_valid, error_message) tuple rather than raising,
    so callers can decide whether a failure skips one file or aborts the run.
    """

    @staticmethod
    def validate_file_path(file_path: str,
                           allowed_extensions: Optional[Iterable[str]] = None,
                           max_size: Optional[int] = None) -> Tuple[bool, str]:
        """
        Check that a content file can be safely read.

        Args:
            file_path: File to check
            allowed_extensions: Allowed suffixes (defaults to SUPPORTED_EXTENSIONS)
            max_size: Size limit in bytes (defaults to MAX_FILE_SIZE)

        Returns:
            Tuple[bool, str]: (is_valid, error_message)
        """
        extensions = set(allowed_extensions or SUPPORTED_EXTENSIONS)
        size_limit = max_size or MAX_FILE_SIZE

        try:
            path_obj = Path(file_path).resolve(strict=True)
        except (OSError, RuntimeError) as e:
            return False, f"Path resolution failed: {str(e)}"

        if not path_obj.is_file():
            return False, f"Path is not a regular file: {file_path}"

        if path_obj.suffix.lower() not in extensions:
            return False, f"Invalid file extension '{path_obj.suffix}'. Allowed: {sorted(extensions)}"

        try:
            file_size = path_obj.stat().st_size
        except OSError as e:
            return False, f"Cannot read file size: {str(e)}"

        if file_size > size_limit:
            size_mb = file_size / (1024 * 1024)
            limit_mb = size_limit / (1024 * 1024)
            return False, f"File too large: {size_mb:.1f}MB (limit: {limit_mb:.0f}MB)"

        if not os.access(path_obj, os.R_OK):
            return False, f"File is not readable: {file_path}"

        return True, ""

    @staticmethod
    def validate_directory_path(dir_path: str) -> Tuple[bool, str]:
        """
        Check that a directory exists and can be listed.

        Returns:
            Tuple[bool, str]: (is_valid, error_message)
        """
        try:
            path_obj = Path(dir_path).resolve(strict=True)
        except (OSError, RuntimeError) as e:
            return False, f"Directory resolution failed: {str(e)}"

        if not path_obj.is_dir():
            return False, f"Path is not a directory: {dir_path}"

        if not os.access(path_obj, os.R_OK | os.X_OK):
            return False, f"Directory is not accessible: {dir_path}"

        return True, ""

    @staticmethod
    def validate_output_path(output_path: str) -> Tuple[bool, str]:
        """
        Check that a template can be written to `output_path`.

        The parent directory must exist (or be creatable) and be writable, and
        the file must be a .json file.
        """
        path_obj = Path(output_path)

        if path_obj.suffix.lower() != '.json':
            return False, f"Output file must have a .json extension: {output_path}"

        parent = path_obj.parent if str(path_obj.parent) else Path('.')
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return False, f"Cannot create output directory {parent}: {str(e)}"

        if not os.access(parent, os.W_OK):
            return False, f"Output directory is not writable: {parent}"

        if path_obj.exists() and not path_obj.is_file():
            return False, f"Output path exists and is not a file: {output_path}"

        return True, ""

    @staticmethod
    def sanitize_filename(name: str) -> str:
        """
        Make a customer name safe to use as a file name.

        Path separators and characters Windows rejects become underscores;
        an empty result becomes "output".

        Example:
            SecurityValidator.sanitize_filename("contoso/../prod")  # -> "contoso_.._prod"
        """
        sanitized = _UNSAFE_FILENAME_CHARACTERS.sub('_', name)
        sanitized = sanitized.replace('/', '_').replace('\\', '_').strip().strip('.')
        if sanitized != name:
            logger.debug(f"Sanitized file name '{name}' to '{sanitized}'")
        return sanitized or "output"
