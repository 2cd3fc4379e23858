"""
Busca Entry Point
=================

Command-line interface: finds the files under a search root that share the
most lines with a reference file (or piped text), prints them as a ranked
table and, in a terminal, shows the detailed diff of a chosen match.

Usage:
    python -m busca [reference] [-s SEARCH_PATH] [-e EXT] [-i GLOB] [-x GLOB]
                    [-m MAX_LINES] [-c COUNT] [-j WORKERS] [--verbose]
"""
import argparse
import sys
from typing import List, Optional

from tqdm import tqdm

from .config import DEFAULT_MAX_LINES, DEFAULT_RESULT_COUNT, ScanContext, SearchConfig
from .errors import BuscaError
from .input_controller import FileScanner, InputController
from .log import configure_logging
from .search import SearchRunner
from .visualizer import NO_MATCHES_MESSAGE, DetailedDiffRenderer, ResultFormatter, TerminalPresenter


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="busca",
        description="busca: find the files most similar to a reference file, "
                    "ranked by the share of reference lines they contain.")
    parser.add_argument("reference", nargs="?",
                        help="Reference file. Reads piped standard input when omitted")
    parser.add_argument("-s", "--search-path",
                        help="Directory or file in which to search. Defaults to the current directory")
    parser.add_argument("-e", "--ext", action="append",
                        help="File extension to include, repeatable (ex: -e py -e json)")
    parser.add_argument("-i", "--include", action="append",
                        help="Glob pattern a path must match, repeatable")
    parser.add_argument("-x", "--exclude", action="append",
                        help="Glob pattern excluding matching paths, repeatable")
    parser.add_argument("-m", "--max-lines", type=int, default=DEFAULT_MAX_LINES,
                        help="Files with more lines are skipped (default: %(default)s)")
    parser.add_argument("-c", "--count", type=int, default=DEFAULT_RESULT_COUNT,
                        help="Number of results to display, 1-200 (default: %(default)s)")
    parser.add_argument("-j", "--workers", type=int,
                        help="Number of scoring processes. Defaults to the CPU count")
    parser.add_argument("--no-interactive", action="store_true",
                        help="Print the table and exit without prompting for a file")
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI colors")
    parser.add_argument("--verbose", action="store_true",
                        help="Print every file considered and why it was kept or skipped")
    return parser


def prompt_selection(count: int) -> Optional[int]:
    """
    Asks for a row number. Returns its 0-based index, or None on cancel.
    """
    while True:
        try:
            answer = input(f"Select a file to compare [1-{count}, empty to quit]: ").strip()
        except (EOFError, KeyboardInterrupt):
            return None
        if not answer: return None
        if answer.isdigit() and 1 <= int(answer) <= count:
            return int(answer) - 1
        print(f"Please enter a number between 1 and {count}.", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main execution function.

    1. Parses and validates the command line into a SearchConfig.
    2. Reads the reference text.
    3. Scores every candidate in parallel and ranks them.
    4. Prints the table, then optionally the detailed diff of one match.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    interactive = (not args.no_interactive and args.reference is not None
                   and sys.stdin.isatty() and sys.stdout.isatty())
    presenter = TerminalPresenter(color=not args.no_color and sys.stdout.isatty())

    try:
        config = SearchConfig(
            reference_path=args.reference,
            search_root=args.search_path,
            include_globs=args.include,
            exclude_globs=args.exclude,
            extensions=args.ext,
            max_lines=args.max_lines,
            result_count=args.count,
            verbose=args.verbose,
            workers=args.workers,
        )
        reference = InputController().read_reference(config.reference_path)

        context = ScanContext(verbose=config.verbose)
        with tqdm(unit=" files", disable=True if config.verbose else None, leave=False) as bar:
            context.progress = bar
            matches = SearchRunner(config, context).run(reference)

        formatter = ResultFormatter()
        rows = formatter.format_rows(matches)
        if not rows:
            presenter.show_table(NO_MATCHES_MESSAGE)
            return 0

        if not interactive:
            presenter.show_table(formatter.render(matches))
            return 0

        width = len(str(len(rows)))
        presenter.show_table("\n".join(f"{i:>{width}}) {row}" for i, row in enumerate(rows, 1)))
        choice = prompt_selection(len(rows))
        if choice is None: return 0

        candidate = FileScanner.read_candidate(matches[choice].path)
        presenter.show_diff(DetailedDiffRenderer().render(reference, candidate))
    except BuscaError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
