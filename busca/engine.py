from typing import Hashable, List, Optional, Sequence, Tuple
from .models import DiffOp, DiffTag, EditScript
from .utils import LineSplitter

class MyersDiffer:
    """
    Myers O((N+M)*D) shortest edit script over two sequences of hashable tokens.

    Tokens are compared by exact equality. The common prefix and suffix are
    trimmed before the search, only the differing middle is explored.
    """

    def __init__(self, a: Sequence[Hashable], b: Sequence[Hashable]):
        self.a = a
        self.b = b

        n, m = len(a), len(b)
        prefix = 0
        while prefix < n and prefix < m and a[prefix] == b[prefix]:
            prefix += 1
        suffix = 0
        while (suffix < n - prefix and suffix < m - prefix
               and a[n - 1 - suffix] == b[m - 1 - suffix]):
            suffix += 1

        self.prefix = prefix
        self.suffix = suffix
        self._mid_a = a[prefix:n - suffix]
        self._mid_b = b[prefix:m - suffix]

    def distance(self) -> int:
        """
        Length of the shortest edit script (inserts plus deletes).

        Runs the forward pass only and keeps a single V array.
        """
        a, b = self._mid_a, self._mid_b
        n, m = len(a), len(b)
        if n == 0 or m == 0: return n + m

        max_d = n + m
        offset = max_d + 1
        v = [0] * (2 * max_d + 3)
        for d in range(max_d + 1):
            for k in range(-d, d + 1, 2):
                if k == -d or (k != d and v[offset + k - 1] < v[offset + k + 1]):
                    x = v[offset + k + 1]
                else:
                    x = v[offset + k - 1] + 1
                y = x - k
                while x < n and y < m and a[x] == b[y]:
                    x += 1
                    y += 1
                v[offset + k] = x
                if x >= n and y >= m:
                    return d
        return max_d

    def equal_count(self) -> int:
        """Number of tokens kept unchanged by the shortest edit script."""
        total = len(self.a) + len(self.b)
        return (total - self.distance()) // 2

    def opcodes(self) -> List[DiffOp]:
        """
        Shortest edit script as a list of contiguous runs.

        Uses the linear-space divide and conquer refinement: each step finds
        the middle snake of the remaining box and recurses on both halves, so
        memory stays O(N+M). Every changed region comes out as one DELETE
        followed by one INSERT, adjacent EQUAL runs are merged.
        """
        n, m = len(self.a), len(self.b)
        size = 2 * self._max_d(n, m) + 3
        vf = [0] * size
        vb = [0] * size
        raw: List[DiffOp] = []
        self._conquer(0, n, 0, m, vf, vb, raw)
        return self._normalize(raw)

    @staticmethod
    def _max_d(n: int, m: int) -> int:
        return (n + m + 1) // 2 + 1

    def _conquer(self, a_lo: int, a_hi: int, b_lo: int, b_hi: int,
                 vf: List[int], vb: List[int], raw: List[DiffOp]):
        a, b = self.a, self.b
        start_a, start_b = a_lo, b_lo
        while a_lo < a_hi and b_lo < b_hi and a[a_lo] == b[b_lo]:
            a_lo += 1
            b_lo += 1
        if a_lo > start_a:
            raw.append(DiffOp(DiffTag.EQUAL, start_a, a_lo, start_b, b_lo))

        suffix = 0
        while (a_lo < a_hi - suffix and b_lo < b_hi - suffix
               and a[a_hi - 1 - suffix] == b[b_hi - 1 - suffix]):
            suffix += 1
        a_hi -= suffix
        b_hi -= suffix

        if a_lo == a_hi and b_lo == b_hi:
            pass
        elif a_lo == a_hi or b_lo == b_hi or set(a[a_lo:a_hi]).isdisjoint(b[b_lo:b_hi]):
            # nothing in common, the whole box is one replacement
            self._replace(a_lo, a_hi, b_lo, b_hi, raw)
        else:
            snake = self._middle_snake(a_lo, a_hi, b_lo, b_hi, vf, vb)
            if snake is None:
                self._replace(a_lo, a_hi, b_lo, b_hi, raw)
            else:
                x, y = snake
                self._conquer(a_lo, x, b_lo, y, vf, vb, raw)
                self._conquer(x, a_hi, y, b_hi, vf, vb, raw)

        if suffix:
            raw.append(DiffOp(DiffTag.EQUAL, a_hi, a_hi + suffix, b_hi, b_hi + suffix))

    @staticmethod
    def _replace(a_lo: int, a_hi: int, b_lo: int, b_hi: int, raw: List[DiffOp]):
        if a_hi > a_lo:
            raw.append(DiffOp(DiffTag.DELETE, a_lo, a_hi, b_lo, b_lo))
        if b_hi > b_lo:
            raw.append(DiffOp(DiffTag.INSERT, a_hi, a_hi, b_lo, b_hi))

    def _middle_snake(self, a_lo: int, a_hi: int, b_lo: int, b_hi: int,
                      vf: List[int], vb: List[int]) -> Optional[Tuple[int, int]]:
        """
        Finds a split point on some shortest path through the box.

        Returns:
            Optional[Tuple[int, int]]: Absolute (old, new) indices strictly
            inside the box, or None if the searches never overlap.
        """
        a, b = self.a, self.b
        n, m = a_hi - a_lo, b_hi - b_lo
        delta = n - m
        odd = delta % 2 != 0
        offset = len(vf) // 2
        vf[offset + 1] = 0
        vb[offset + 1] = 0

        for d in range(self._max_d(n, m)):
            for k in range(d, -d - 1, -2):
                if k == -d or (k != d and vf[offset + k - 1] < vf[offset + k + 1]):
                    x = vf[offset + k + 1]
                else:
                    x = vf[offset + k - 1] + 1
                y = x - k
                x0, y0 = x, y
                while x < n and y < m and a[a_lo + x] == b[b_lo + y]:
                    x += 1
                    y += 1
                vf[offset + k] = x
                if odd and abs(k - delta) <= d - 1 and x + vb[offset - (k - delta)] >= n:
                    return self._split_point(a_lo + x0, b_lo + y0, a_lo, a_hi, b_lo, b_hi)

            for k in range(d, -d - 1, -2):
                if k == -d or (k != d and vb[offset + k - 1] < vb[offset + k + 1]):
                    x = vb[offset + k + 1]
                else:
                    x = vb[offset + k - 1] + 1
                y = x - k
                while x < n and y < m and a[a_hi - 1 - x] == b[b_hi - 1 - y]:
                    x += 1
                    y += 1
                vb[offset + k] = x
                if not odd and abs(k - delta) <= d and x + vf[offset - (k - delta)] >= n:
                    return self._split_point(a_hi - x, b_hi - y, a_lo, a_hi, b_lo, b_hi)
        return None

    @staticmethod
    def _split_point(x: int, y: int, a_lo: int, a_hi: int,
                     b_lo: int, b_hi: int) -> Optional[Tuple[int, int]]:
        # a corner would recurse on the same box forever
        if not (a_lo <= x <= a_hi and b_lo <= y <= b_hi): return None
        if (x, y) in ((a_lo, b_lo), (a_hi, b_hi)): return None
        return x, y

    @staticmethod
    def _normalize(raw: List[DiffOp]) -> List[DiffOp]:
        ops: List[DiffOp] = []
        i = 0
        while i < len(raw):
            op = raw[i]
            if op.tag is DiffTag.EQUAL:
                if ops and ops[-1].tag is DiffTag.EQUAL:
                    last = ops.pop()
                    op = DiffOp(DiffTag.EQUAL, last.old_start, op.old_end, last.new_start, op.new_end)
                ops.append(op)
                i += 1
                continue

            old_start, old_end = op.old_start, op.old_end
            new_start, new_end = op.new_start, op.new_end
            while i < len(raw) and raw[i].tag is not DiffTag.EQUAL:
                old_end = max(old_end, raw[i].old_end)
                new_end = max(new_end, raw[i].new_end)
                i += 1
            if old_end > old_start:
                ops.append(DiffOp(DiffTag.DELETE, old_start, old_end, new_start, new_start))
            if new_end > new_start:
                ops.append(DiffOp(DiffTag.INSERT, old_end, old_end, new_start, new_end))
        return ops



class LineDiffer:
    """
    Line-level differ. Lines are newline-terminated tokens, see LineSplitter.
    """

    @staticmethod
    def diff(reference: str, candidate: str) -> EditScript:
        """
        Aligns the lines of two texts.

        Args:
            reference (str): The reference (old) text.
            candidate (str): The candidate (new) text.

        Returns:
            EditScript: Pure INSERT when the reference is empty, pure DELETE
            when the candidate is empty.
        """
        old_lines = LineSplitter.split_lines(reference)
        new_lines = LineSplitter.split_lines(candidate)
        ops = MyersDiffer(old_lines, new_lines).opcodes()
        return EditScript(old_lines=old_lines, new_lines=new_lines, ops=ops)

    @staticmethod
    def count_equal_lines(reference: str, candidate: str) -> int:
        """Number of lines tagged EQUAL in the shortest edit script."""
        old_lines = LineSplitter.split_lines(reference)
        new_lines = LineSplitter.split_lines(candidate)
        return MyersDiffer(old_lines, new_lines).equal_count()


class SimilarityScorer:
    """Reduces a line diff to the fraction of reference lines kept."""

    @staticmethod
    def score(reference: str, candidate: str) -> float:
        """
        Shared lines divided by total reference lines.

        Returns 0.0 when the reference has no countable line.
        """
        total = LineSplitter.total_reference_lines(reference)
        if total == 0: return 0.0
        shared = LineDiffer.count_equal_lines(reference, candidate)
        return shared / total
