import math
import sys
from typing import List, Optional, Sequence, TextIO, Tuple

from .engine import LineDiffer, MyersDiffer
from .models import DetailedDiff, DiffGroup, DiffOp, DiffTag, EditScript, FileMatch, RenderInstruction
from .utils import LineSplitter

NO_MATCHES_MESSAGE = "No files found that match the criteria."
IDENTICAL_MESSAGE = "The files are identical."
BAR_MARKER = "+"
BAR_LENGTH = 10
DEFAULT_CONTEXT = 3
# Replaced regions with more tokens than this are shown without emphasis.
INLINE_TOKEN_LIMIT = 4_000

Fragments = List[Tuple[bool, str]]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ResultFormatter:
    """
    Renders a MatchSet as an aligned three-column table:
    path, proportional bar, percentage.
    """

    def __init__(self, marker: str = BAR_MARKER):
        self.marker = marker

    def format_rows(self, matches: Sequence[FileMatch]) -> List[str]:
        """
        One table row per match, in MatchSet order. Column widths fit the
        widest cell; the percentage column is right-aligned.
        """
        cells = [
            (str(match.path),
             self.marker * round_half_up(match.score * BAR_LENGTH),
             f"{match.score * 100:.1f}%")
            for match in matches
        ]
        if not cells: return []

        path_width = max(len(path) for path, _, _ in cells)
        bar_width = max(len(bar) for _, bar, _ in cells)
        perc_width = max(len(perc) for _, _, perc in cells)
        return [
            f"{path:<{path_width}} | {bar:<{bar_width}} | {perc:>{perc_width}}"
            for path, bar, perc in cells
        ]

    def render(self, matches: Sequence[FileMatch]) -> str:
        """Returns the table, or NO_MATCHES_MESSAGE when there is nothing to show."""
        rows = self.format_rows(matches)
        if not rows: return NO_MATCHES_MESSAGE
        return "\n".join(rows)


class DetailedDiffRenderer:
    """
    Turns the diff of one reference/candidate pair into render instructions.

    Changes are clustered with up to `context` unchanged lines on each side.
    Inside a cluster, each replaced region (a DELETE run next to an INSERT
    run) is diffed again at word level so the differing fragments can be
    emphasised.
    """

    def __init__(self, context: int = DEFAULT_CONTEXT):
        self.context = context

    def render(self, reference: str, candidate: str,
               script: Optional[EditScript] = None) -> DetailedDiff:
        """
        Args:
            reference (str): Reference text.
            candidate (str): Candidate text.
            script (Optional[EditScript]): A script already computed for the pair.

        Returns:
            DetailedDiff: `identical` is set and `groups` empty when nothing changed.
        """
        if script is None:
            script = LineDiffer.diff(reference, candidate)
        if not script.has_changes:
            return DetailedDiff(identical=True)
        groups = [self._render_group(script, ops) for ops in self.group_ops(script.ops)]
        return DetailedDiff(identical=False, groups=groups)

    def group_ops(self, ops: Sequence[DiffOp]) -> List[List[DiffOp]]:
        """
        Clusters the operations around each change.

        Leading and trailing EQUAL runs are cut to `context` lines. An EQUAL
        run longer than twice the context closes the current cluster.
        """
        n = self.context
        codes = list(ops)
        if not any(op.tag is not DiffTag.EQUAL for op in codes): return []

        first = codes[0]
        if first.tag is DiffTag.EQUAL:
            codes[0] = DiffOp(DiffTag.EQUAL, max(first.old_start, first.old_end - n), first.old_end,
                              max(first.new_start, first.new_end - n), first.new_end)
        last = codes[-1]
        if last.tag is DiffTag.EQUAL:
            codes[-1] = DiffOp(DiffTag.EQUAL, last.old_start, min(last.old_end, last.old_start + n),
                               last.new_start, min(last.new_end, last.new_start + n))

        groups = []
        group: List[DiffOp] = []
        for op in codes:
            if op.tag is DiffTag.EQUAL and op.old_len > 2 * n:
                group.append(DiffOp(DiffTag.EQUAL, op.old_start, op.old_start + n,
                                    op.new_start, op.new_start + n))
                groups.append(group)
                group = [DiffOp(DiffTag.EQUAL, op.old_end - n, op.old_end,
                                op.new_end - n, op.new_end)]
            else:
                group.append(op)
        if group and not (len(group) == 1 and group[0].tag is DiffTag.EQUAL):
            groups.append(group)

        return [[op for op in g if op.old_len or op.new_len] for g in groups]

    def _render_group(self, script: EditScript, ops: List[DiffOp]) -> DiffGroup:
        instructions: DiffGroup = []
        i = 0
        while i < len(ops):
            op = ops[i]
            if op.tag is DiffTag.EQUAL:
                for offset, line in enumerate(script.lines(op)):
                    instructions.append(RenderInstruction(
                        kind=DiffTag.EQUAL,
                        old_lineno=op.old_start + offset + 1,
                        new_lineno=op.new_start + offset + 1,
                        fragments=self._plain(line),
                        missing_newline=not line.endswith("\n"),
                    ))
                i += 1
                continue

            deleted = op if op.tag is DiffTag.DELETE else None
            inserted = op if op.tag is DiffTag.INSERT else None
            if deleted is not None and i + 1 < len(ops) and ops[i + 1].tag is DiffTag.INSERT:
                inserted = ops[i + 1]
                i += 1
            i += 1

            old_lines = script.lines(deleted) if deleted else []
            new_lines = script.lines(inserted) if inserted else []
            if old_lines and new_lines:
                old_fragments, new_fragments = self.inline_fragments(old_lines, new_lines)
            else:
                old_fragments = [self._plain(line) for line in old_lines]
                new_fragments = [self._plain(line) for line in new_lines]

            for offset, (line, fragments) in enumerate(zip(old_lines, old_fragments)):
                instructions.append(RenderInstruction(
                    kind=DiffTag.DELETE,
                    old_lineno=deleted.old_start + offset + 1,
                    new_lineno=None,
                    fragments=fragments,
                    missing_newline=not line.endswith("\n"),
                ))
            for offset, (line, fragments) in enumerate(zip(new_lines, new_fragments)):
                instructions.append(RenderInstruction(
                    kind=DiffTag.INSERT,
                    old_lineno=None,
                    new_lineno=inserted.new_start + offset + 1,
                    fragments=fragments,
                    missing_newline=not line.endswith("\n"),
                ))
        return instructions

    def inline_fragments(self, old_lines: List[str],
                         new_lines: List[str]) -> Tuple[List[Fragments], List[Fragments]]:
        """
        Word-level diff of a replaced region.

        Returns:
            Tuple[List[Fragments], List[Fragments]]: Per-line fragments for
            the old and the new lines. Tokens absent from the other side are
            emphasised.
        """
        old_tokens = LineSplitter.tokenize_inline("".join(old_lines))
        new_tokens = LineSplitter.tokenize_inline("".join(new_lines))
        if len(old_tokens) + len(new_tokens) > INLINE_TOKEN_LIMIT:
            return ([self._plain(line) for line in old_lines],
                    [self._plain(line) for line in new_lines])

        old_marks = [False] * len(old_tokens)
        new_marks = [False] * len(new_tokens)
        for op in MyersDiffer(old_tokens, new_tokens).opcodes():
            if op.tag is DiffTag.DELETE:
                old_marks[op.old_start:op.old_end] = [True] * op.old_len
            elif op.tag is DiffTag.INSERT:
                new_marks[op.new_start:op.new_end] = [True] * op.new_len

        return (self._split_fragments(old_tokens, old_marks),
                self._split_fragments(new_tokens, new_marks))

    @staticmethod
    def _split_fragments(tokens: List[str], marks: List[bool]) -> List[Fragments]:
        lines: List[Fragments] = [[]]
        for token, emphasized in zip(tokens, marks):
            if token == "\n":
                lines.append([])
                continue
            fragments = lines[-1]
            if fragments and fragments[-1][0] == emphasized:
                fragments[-1] = (emphasized, fragments[-1][1] + token)
            else:
                fragments.append((emphasized, token))
        # Text ending in a terminator leaves an empty trailing entry.
        if tokens and tokens[-1] == "\n":
            lines.pop()
        return lines

    @staticmethod
    def _plain(line: str) -> Fragments:
        text = line[:-1] if line.endswith("\n") else line
        return [(False, text)] if text else []


class TerminalPresenter:
    """
    Prints render instructions with ANSI styling. Holds no diff logic.
    """

    RED = '\033[31m'
    GREEN = '\033[32m'
    DIM = '\033[2m'
    BOLD = '\033[1m'
    UNDERLINE = '\033[4m'
    ON_BLACK = '\033[40m'
    ENDC = '\033[0m'

    SIGNS = {DiffTag.DELETE: "-", DiffTag.INSERT: "+", DiffTag.EQUAL: " "}
    SEPARATOR = "-" * 80

    def __init__(self, color: bool = True, stream: Optional[TextIO] = None):
        self.color = color
        self.stream = stream if stream is not None else sys.stdout

    def format_diff(self, detailed: DetailedDiff) -> str:
        if detailed.identical: return IDENTICAL_MESSAGE

        lines = []
        for idx, group in enumerate(detailed.groups):
            if idx > 0:
                lines.append(self.SEPARATOR)
            for instruction in group:
                lines.append(self.format_instruction(instruction))
        return "\n".join(lines)

    def format_instruction(self, instruction: RenderInstruction) -> str:
        style = {
            DiffTag.DELETE: self.RED,
            DiffTag.INSERT: self.GREEN,
            DiffTag.EQUAL: self.DIM,
        }[instruction.kind]

        old = self._lineno(instruction.old_lineno)
        new = self._lineno(instruction.new_lineno)
        sign = self.SIGNS[instruction.kind]
        prefix = f"{self._paint(old, self.DIM)} {self._paint(new, self.DIM)} " \
                 f"{self._paint(sign, style + self.BOLD)} |"

        body = []
        for emphasized, value in instruction.fragments:
            if emphasized:
                body.append(self._paint(value, style + self.UNDERLINE + self.ON_BLACK))
            else:
                body.append(self._paint(value, style))
        return prefix + "".join(body)

    def show_table(self, text: str):
        print(text, file=self.stream)

    def show_diff(self, detailed: DetailedDiff):
        print(self.format_diff(detailed), file=self.stream)

    def _paint(self, text: str, codes: str) -> str:
        if not self.color or not text: return text
        return f"{codes}{text}{self.ENDC}"

    @staticmethod
    def _lineno(value: Optional[int]) -> str:
        if value is None: return "    "
        return f"{value:<4}"
