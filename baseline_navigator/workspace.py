"""
Workspace enumeration for the command-line host.

Collects source files under one or more roots and turns them into
Document triples for the analyzer. The core never reads the disk itself.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Union

from baseline_navigator.core.models import Document

# File extension -> editor language id
LANGUAGE_BY_EXTENSION: Dict[str, str] = {
    '.css': 'css',
    '.scss': 'scss',
    '.sass': 'sass',
    '.less': 'less',
    '.js': 'javascript',
    '.mjs': 'javascript',
    '.jsx': 'javascriptreact',
    '.ts': 'typescript',
    '.tsx': 'typescriptreact',
    '.html': 'html',
    '.htm': 'html',
    '.vue': 'vue',
    '.svelte': 'svelte',
}

IGNORED_DIRECTORIES = {'node_modules'}

DEFAULT_MAX_FILES = 1000


def language_for(path: Union[str, Path]) -> Optional[str]:
    """Language id for a file path, or None for unsupported extensions."""
    return LANGUAGE_BY_EXTENSION.get(Path(path).suffix.lower())


class WorkspaceScanner:
    """
    Enumerates analyzable files under workspace roots.

    Skips node_modules and dot-directories and stops at max_files.
    """

    def __init__(self, max_files: int = DEFAULT_MAX_FILES):
        """
        Initialize scanner.

        Args:
            max_files: Cap on the number of files collected across all roots
        """
        if max_files < 1:
            raise ValueError(f"max_files must be >= 1, got {max_files}")
        self.max_files = max_files
        self.logger = logging.getLogger("workspace")

    def collect_files(self, roots: Sequence[Union[str, Path]]) -> List[Path]:
        """Sorted, de-duplicated list of supported files, at most max_files long."""
        files = set()
        for root in roots:
            root = Path(root)
            if root.is_file():
                if language_for(root):
                    files.add(root)
                else:
                    self.logger.warning(f"Skipping unsupported file: {root}")
            elif root.is_dir():
                files.update(self._scan_directory(root))
            else:
                self.logger.warning(f"Path not found: {root}")

        collected = sorted(files)
        if len(collected) > self.max_files:
            self.logger.warning(
                f"Found {len(collected)} files, analyzing the first {self.max_files}"
            )
            collected = collected[:self.max_files]
        return collected

    def _scan_directory(self, directory: Path) -> Iterator[Path]:
        for dirpath, dirnames, filenames in os.walk(directory):
            dirnames[:] = sorted(
                d for d in dirnames
                if d not in IGNORED_DIRECTORIES and not d.startswith('.')
            )
            for filename in filenames:
                path = Path(dirpath) / filename
                if language_for(path):
                    yield path

    def read_documents(self, files: Sequence[Path]) -> Iterator[Document]:
        """
        Read files into Documents.

        Unreadable files are logged and skipped.
        """
        for path in files:
            try:
                text = path.read_text(encoding='utf-8', errors='replace')
            except OSError as e:
                self.logger.error(f"Failed to read {path}: {e}")
                continue
            yield Document(text=text, language_id=language_for(path) or 'plaintext', filename=str(path))


def create_workspace_scanner(config: Optional[Dict] = None) -> WorkspaceScanner:
    """Factory function reading 'max_files' from the workspace config section."""
    config = config or {}
    return WorkspaceScanner(max_files=config.get('max_files', DEFAULT_MAX_FILES))
