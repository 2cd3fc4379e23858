from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import FrozenSet, List, Optional, Tuple


class DiffTag(Enum):
    EQUAL = "equal"
    INSERT = "insert"
    DELETE = "delete"


@dataclass(frozen=True)
class DiffOp:
    """
    A contiguous run of lines with a single change kind.

    Ranges are 0-based and half-open. EQUAL spans both sides, DELETE only
    the old (reference) side and INSERT only the new (candidate) side.
    """
    tag: DiffTag
    old_start: int
    old_end: int
    new_start: int
    new_end: int

    @property
    def old_len(self) -> int:
        return self.old_end - self.old_start

    @property
    def new_len(self) -> int:
        return self.new_end - self.new_start


@dataclass
class EditScript:
    """
    Ordered sequence of DiffOp covering both line sequences completely.

    Attributes:
        old_lines (List[str]): Reference lines, terminators kept.
        new_lines (List[str]): Candidate lines, terminators kept.
        ops (List[DiffOp]): The aligned operations.
    """
    old_lines: List[str]
    new_lines: List[str]
    ops: List[DiffOp]

    @property
    def equal_count(self) -> int:
        return sum(op.old_len for op in self.ops if op.tag is DiffTag.EQUAL)

    @property
    def has_changes(self) -> bool:
        return any(op.tag is not DiffTag.EQUAL for op in self.ops)

    def lines(self, op: DiffOp) -> List[str]:
        if op.tag is DiffTag.INSERT:
            return self.new_lines[op.new_start:op.new_end]
        return self.old_lines[op.old_start:op.old_end]


@dataclass(frozen=True)
class FileMatch:
    path: Path
    score: float


@dataclass(frozen=True)
class ScanFilter:
    """
    Filters applied by the FileScanner. A None set disables its stage.
    """
    include_globs: Optional[FrozenSet[str]] = None
    exclude_globs: Optional[FrozenSet[str]] = None
    max_lines: int = 10_000
    extensions: Optional[FrozenSet[str]] = None


@dataclass
class RenderInstruction:
    """
    One line of a detailed diff.

    Attributes:
        kind (DiffTag): Change kind of the line.
        old_lineno (Optional[int]): 1-based reference line, None for inserts.
        new_lineno (Optional[int]): 1-based candidate line, None for deletes.
        fragments (List[Tuple[bool, str]]): (is_emphasized, text) pairs that
            join into the line text, without its terminator.
        missing_newline (bool): The line is the last one and has no terminator.
    """
    kind: DiffTag
    old_lineno: Optional[int]
    new_lineno: Optional[int]
    fragments: List[Tuple[bool, str]]
    missing_newline: bool = False

    @property
    def text(self) -> str:
        return "".join(value for _, value in self.fragments)


DiffGroup = List[RenderInstruction]


@dataclass
class DetailedDiff:
    identical: bool
    groups: List[DiffGroup] = field(default_factory=list)
