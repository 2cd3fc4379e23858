import multiprocessing
import os
from functools import cmp_to_key, partial
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from .config import DEFAULT_RESULT_COUNT, ScanContext, SearchConfig, clamp_result_count
from .engine import SimilarityScorer
from .input_controller import FileScanner
from .models import FileMatch, ScanFilter

# (encounter_index, path, match or None, trace reason)
ScoredCandidate = Tuple[int, Path, Optional[FileMatch], str]


def score_candidate(job: Tuple[int, Path], reference: str, scan_filter: ScanFilter) -> ScoredCandidate:
    """
    Loads, filters and scores one candidate. Runs inside a worker process,
    so it only returns owned values and never touches shared state.
    """
    index, path = job
    content, reason = FileScanner.load(path, scan_filter)
    if content is None:
        return index, path, None, reason
    score = SimilarityScorer.score(reference, content)
    return index, path, FileMatch(path=path, score=score), f"compared ({score * 100:.1f}%)"


class RankingAggregator:
    """
    Merges scored candidates into a MatchSet: score descending, ties by
    scan encounter order, truncated to the result count.
    """

    def __init__(self, count: int = DEFAULT_RESULT_COUNT):
        self.count = clamp_result_count(count)

    def rank(self, entries: Iterable[Tuple[int, FileMatch]]) -> List[FileMatch]:
        """
        Args:
            entries: (encounter_index, FileMatch) pairs in any order.

        Returns:
            List[FileMatch]: At most `count` matches, best first.
        """
        ordered = sorted(entries, key=cmp_to_key(self._compare))
        return [match for _, match in ordered[:self.count]]

    @staticmethod
    def _compare(left: Tuple[int, FileMatch], right: Tuple[int, FileMatch]) -> int:
        left_index, left_match = left
        right_index, right_match = right
        # NaN compares false both ways and falls through to the tie-break.
        if left_match.score > right_match.score: return -1
        if left_match.score < right_match.score: return 1
        return (left_index > right_index) - (left_index < right_index)


class SearchRunner:
    """
    Fan-out/fan-in search over a search root.

    Paths are collected first so that every candidate has an encounter
    index and the progress sink knows the total. Scoring runs in a process
    pool; results are merged by a single RankingAggregator call.
    """

    def __init__(self, config: SearchConfig, context: Optional[ScanContext] = None):
        self.config = config
        self.context = context if context is not None else ScanContext(verbose=config.verbose)

    def collect_paths(self) -> List[Path]:
        scanner = FileScanner(self.config.search_root, self.config.scan_filter(), self.context)
        return list(scanner.iter_paths())

    def run(self, reference: str) -> List[FileMatch]:
        return self.score_paths(reference, self.collect_paths())

    def score_paths(self, reference: str, paths: Sequence[Path]) -> List[FileMatch]:
        jobs = list(enumerate(paths))
        self.context.start(len(jobs))

        task = partial(score_candidate, reference=reference, scan_filter=self.config.scan_filter())
        entries = []
        for index, path, match, reason in self._map(task, jobs):
            self.context.advance(1)
            self.context.trace(path, reason)
            if match is not None:
                entries.append((index, match))

        return RankingAggregator(self.config.result_count).rank(entries)

    def _map(self, task: Callable, jobs: List[Tuple[int, Path]]) -> Iterator[ScoredCandidate]:
        workers = min(self.config.workers or os.cpu_count() or 1, len(jobs))
        if workers <= 1:
            yield from map(task, jobs)
            return

        chunksize = max(1, len(jobs) // (workers * 4))
        with multiprocessing.Pool(processes=workers) as pool:
            yield from pool.imap_unordered(task, jobs, chunksize=chunksize)
