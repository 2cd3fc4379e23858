"""
Busca Package
=============

Finds the files most similar to a reference text. Similarity is the share
of reference lines that a line-level Myers diff keeps unchanged in the
candidate.

Modules:
    - engine: Myers shortest edit script, line differ and similarity score.
    - input_controller: Reference sources and the filtered file scanner.
    - search: Parallel scoring and deterministic top-N ranking.
    - visualizer: Result table, detailed diff instructions, terminal output.
    - config: Validated search options and the scan context.
    - models: Data structures (DiffOp, EditScript, FileMatch, ...).
    - utils: Line splitting and counting helpers.
"""
from .engine import LineDiffer, MyersDiffer, SimilarityScorer
from .models import FileMatch

__all__ = ["LineDiffer", "MyersDiffer", "SimilarityScorer", "FileMatch"]
