import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, FrozenSet, Iterable, Optional

from .errors import ConfigError
from .log import get_logger
from .models import ScanFilter

DEFAULT_MAX_LINES = 10_000
DEFAULT_RESULT_COUNT = 10
MIN_RESULT_COUNT = 1
MAX_RESULT_COUNT = 200


def clamp_result_count(count) -> int:
    """Out-of-range or non-integer counts fall back to DEFAULT_RESULT_COUNT."""
    if isinstance(count, bool) or not isinstance(count, int):
        return DEFAULT_RESULT_COUNT
    if count < MIN_RESULT_COUNT or count > MAX_RESULT_COUNT:
        return DEFAULT_RESULT_COUNT
    return count


def validate_glob(pattern: str) -> str:
    """
    Rejects empty patterns and character classes that never close.

    Raises:
        ConfigError: If the pattern is malformed.
    """
    if not pattern:
        raise ConfigError("Glob patterns cannot be empty.")
    i = 0
    while i < len(pattern):
        if pattern[i] == "[":
            # A ']' right after '[' or '[!' is a literal member of the class.
            j = i + 1
            if j < len(pattern) and pattern[j] == "!": j += 1
            if j < len(pattern) and pattern[j] == "]": j += 1
            close = pattern.find("]", j)
            if close == -1:
                raise ConfigError(f"The glob pattern '{pattern}' has an unclosed '['.")
            i = close
        i += 1
    return pattern


def _frozen_globs(patterns: Optional[Iterable[str]]) -> Optional[FrozenSet[str]]:
    if patterns is None: return None
    globs = frozenset(validate_glob(p) for p in patterns)
    return globs or None


def _frozen_extensions(extensions: Optional[Iterable[str]]) -> Optional[FrozenSet[str]]:
    if extensions is None: return None
    normalized = frozenset(ext.lstrip(".") for ext in extensions)
    return normalized or None


@dataclass(frozen=True)
class SearchConfig:
    """
    Validated options for one search. Construction is the only validation
    point; an invalid combination raises ConfigError.

    Attributes:
        reference_path (Optional[Path]): Reference file, None to read stdin.
        search_root (Optional[Path]): File or directory to scan, CWD when None.
        include_globs: Paths must match at least one when given.
        exclude_globs: Paths must match none when given.
        extensions: Allowed file extensions without the dot.
        max_lines (int): Candidates with more lines are skipped.
        result_count (int): Number of matches kept, clamped to 1..200.
        verbose (bool): Trace every candidate on the diagnostic stream.
        workers (Optional[int]): Scoring processes, os.cpu_count() when None.
    """
    reference_path: Optional[Path] = None
    search_root: Optional[Path] = None
    include_globs: Optional[FrozenSet[str]] = None
    exclude_globs: Optional[FrozenSet[str]] = None
    extensions: Optional[FrozenSet[str]] = None
    max_lines: int = DEFAULT_MAX_LINES
    result_count: int = DEFAULT_RESULT_COUNT
    verbose: bool = False
    workers: Optional[int] = None

    def __post_init__(self):
        if self.reference_path is not None:
            reference_path = Path(self.reference_path)
            if not reference_path.is_file():
                raise ConfigError(
                    f"The reference file path '{reference_path}' could not be found.")
            object.__setattr__(self, "reference_path", reference_path)

        search_root = Path(self.search_root) if self.search_root is not None else Path(os.getcwd())
        if not search_root.is_file() and not search_root.is_dir():
            raise ConfigError(f"The search path '{search_root}' could not be found.")
        object.__setattr__(self, "search_root", search_root)

        object.__setattr__(self, "include_globs", _frozen_globs(self.include_globs))
        object.__setattr__(self, "exclude_globs", _frozen_globs(self.exclude_globs))
        object.__setattr__(self, "extensions", _frozen_extensions(self.extensions))

        if not isinstance(self.max_lines, int) or self.max_lines < 1:
            raise ConfigError(f"The maximum line count must be positive, got {self.max_lines!r}.")
        if self.workers is not None and (not isinstance(self.workers, int) or self.workers < 1):
            raise ConfigError(f"The worker count must be positive, got {self.workers!r}.")

        count = clamp_result_count(self.result_count)
        if count != self.result_count:
            get_logger().warning(
                "Result count {} is outside {}..{}, using {}.",
                self.result_count, MIN_RESULT_COUNT, MAX_RESULT_COUNT, count)
        object.__setattr__(self, "result_count", count)

    def scan_filter(self) -> ScanFilter:
        return ScanFilter(
            include_globs=self.include_globs,
            exclude_globs=self.exclude_globs,
            max_lines=self.max_lines,
            extensions=self.extensions,
        )


@dataclass
class ScanContext:
    """
    Per-invocation state threaded through the scan pipeline.

    Attributes:
        verbose (bool): Emit a trace record for every candidate.
        progress: Optional sink with a settable `total` plus `update(n)` and
            `refresh()` methods, such as a tqdm bar.
    """
    verbose: bool = False
    progress: Optional[Any] = None
    logger: Any = field(default_factory=get_logger)

    def trace(self, path, reason: str):
        if self.verbose:
            self.logger.debug("{} | {}", path, reason)

    def start(self, total: int):
        if self.progress is not None:
            self.progress.total = total
            self.progress.refresh()

    def advance(self, n: int = 1):
        if self.progress is not None:
            self.progress.update(n)
