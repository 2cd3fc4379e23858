import os
import sys
from abc import ABC, abstractmethod
from fnmatch import fnmatchcase
from pathlib import Path
from typing import FrozenSet, Iterator, Optional, TextIO, Tuple

from .config import ScanContext
from .errors import CandidateIoError, ConfigError, ReferenceIoError
from .models import ScanFilter
from .utils import LineSplitter


def read_text_file(path: Path) -> str:
    """Reads a UTF-8 file without translating line terminators."""
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


class ReferenceParser(ABC):
    """Abstract base class for reference text sources."""

    @abstractmethod
    def read(self) -> str:
        """
        Returns the full reference text.

        Raises:
            ConfigError: If the source is not available at all.
            ReferenceIoError: If the source exists but cannot be read.
        """
        pass


class FileReferenceParser(ReferenceParser):
    """Reads the reference from a file path."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self) -> str:
        try:
            return read_text_file(self.path)
        except (OSError, UnicodeDecodeError) as e:
            raise ReferenceIoError(
                f"The reference file '{self.path}' could not be read: {e}") from e


class StdinReferenceParser(ReferenceParser):
    """Reads the reference from text piped into standard input."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdin

    def read(self) -> str:
        if self.stream is None or self.stream.isatty():
            raise ConfigError(
                "No reference file path was given and nothing was piped into standard input.")
        try:
            return self.stream.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ReferenceIoError(f"Standard input could not be read: {e}") from e


class InputController:
    """
    Picks the reference source. An explicit path always wins over stdin.
    """

    def __init__(self, stdin: Optional[TextIO] = None):
        self.stdin = stdin

    def read_reference(self, reference_path: Optional[Path] = None) -> str:
        return self._get_parser(reference_path).read()

    def _get_parser(self, reference_path: Optional[Path]) -> ReferenceParser:
        if reference_path is not None: return FileReferenceParser(reference_path)
        return StdinReferenceParser(self.stdin)


class FileScanner:
    """
    Walks a search root and yields the candidates that pass every filter.

    Stages, in order: regular file, extension allow-list, include globs,
    exclude globs, UTF-8 decoding, line count in 1..max_lines. Each skip is
    traced through the ScanContext; none of them stops the scan.
    """

    def __init__(self, root: Path, scan_filter: ScanFilter, context: Optional[ScanContext] = None):
        self.root = Path(root)
        self.scan_filter = scan_filter
        self.context = context if context is not None else ScanContext()

    def scan(self) -> Iterator[Tuple[Path, str]]:
        """
        Lazily yields (path, content) for every accepted candidate.
        """
        for path in self.iter_paths():
            content, reason = self.load(path, self.scan_filter)
            if content is None:
                self.context.trace(path, reason)
                continue
            self.context.trace(path, "accepted")
            yield path, content

    def iter_paths(self) -> Iterator[Path]:
        """Yields the paths that pass the path-only stages."""
        for path in self._walk():
            reason = self.check_path(path)
            if reason is not None:
                self.context.trace(path, reason)
                continue
            yield path

    def check_path(self, path: Path) -> Optional[str]:
        """
        Applies the path-only stages.

        Returns:
            Optional[str]: The skip reason, or None if the path passes.
        """
        if not path.is_file():
            return "skipped since it is not a file"

        extensions = self.scan_filter.extensions
        if extensions is not None and path.suffix.lstrip(".") not in extensions:
            return "skipped since it does not match the extension filter"

        include = self.scan_filter.include_globs
        if include is not None and not self._matches(path, include):
            return "skipped since it does not match any include pattern"

        exclude = self.scan_filter.exclude_globs
        if exclude is not None and self._matches(path, exclude):
            return "skipped since it matches an exclude pattern"

        return None

    @staticmethod
    def load(path: Path, scan_filter: ScanFilter) -> Tuple[Optional[str], Optional[str]]:
        """
        Applies the content stages to one file.

        Returns:
            Tuple[Optional[str], Optional[str]]: (content, None) when the file
            is accepted, (None, reason) when it is skipped.
        """
        try:
            content = FileScanner.read_candidate(path)
        except CandidateIoError as e:
            return None, e.reason

        num_lines = LineSplitter.count_lines(content)
        if num_lines == 0:
            return None, "skipped since it is empty"
        if num_lines > scan_filter.max_lines:
            return None, "skipped since it exceeds the maximum line limit"
        return content, None

    @staticmethod
    def read_candidate(path: Path) -> str:
        try:
            return read_text_file(path)
        except UnicodeDecodeError as e:
            raise CandidateIoError(path, "skipped since it is not valid UTF-8 text") from e
        except OSError as e:
            raise CandidateIoError(path, f"skipped since it cannot be read ({e.strerror})") from e

    def _walk(self) -> Iterator[Path]:
        if not self.root.is_dir():
            yield self.root
            return

        for dirpath, dirnames, filenames in os.walk(self.root, onerror=self._on_walk_error):
            dirnames.sort()
            for name in sorted(filenames):
                yield Path(dirpath) / name

    def _on_walk_error(self, error: OSError):
        self.context.trace(error.filename, "skipped since it cannot be read")

    def _matches(self, path: Path, patterns: FrozenSet[str]) -> bool:
        if self.root.is_dir():
            relative = path.relative_to(self.root).as_posix()
        else:
            relative = path.name
        for pattern in patterns:
            if fnmatchcase(relative, pattern) or fnmatchcase(path.name, pattern):
                return True
        return False
