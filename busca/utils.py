import re
from typing import List

# Words, runs of non-newline whitespace, single punctuation marks, newlines.
INLINE_TOKEN_RE = re.compile(r"\n|\w+|[^\S\n]+|[^\w\s]")


class LineSplitter:
    """
    Static helpers for the two line counts used by busca.

    The differ works on newline-terminated tokens, where a last line without
    a terminator is a distinct token. The scorer's denominator counts the
    segments of a plain split, without the empty segment after a trailing
    terminator.
    """

    @staticmethod
    def split_lines(text: str) -> List[str]:
        """
        Splits text on '\\n', keeping the terminator on every line.

        The final line keeps no terminator when the text does not end with
        one, so "17" and "17\\n" are different tokens.
        """
        if not text: return []
        parts = text.split("\n")
        lines = [part + "\n" for part in parts[:-1]]
        if parts[-1]:
            lines.append(parts[-1])
        return lines

    @staticmethod
    def count_lines(text: str) -> int:
        """Number of lines as a line iterator sees them. Empty text has none."""
        return len(LineSplitter.split_lines(text))

    @staticmethod
    def total_reference_lines(text: str) -> int:
        """
        Denominator of the similarity score.

        Returns:
            int: Number of '\\n'-separated segments, minus one when the text
            ends with a terminator.
        """
        if not text: return 0
        total = len(text.split("\n"))
        if text.endswith("\n"):
            total -= 1
        return total

    @staticmethod
    def tokenize_inline(text: str) -> List[str]:
        """Splits text into the tokens used for sub-line highlighting."""
        return INLINE_TOKEN_RE.findall(text)
