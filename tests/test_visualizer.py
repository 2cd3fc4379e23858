import io
import unittest
from pathlib import Path
from busca.models import DiffTag, FileMatch
from busca.visualizer import (IDENTICAL_MESSAGE, NO_MATCHES_MESSAGE, DetailedDiffRenderer,
                              ResultFormatter, TerminalPresenter, round_half_up)


def numbered(lines):
    return "".join(f"{line}\n" for line in lines)


class TestResultFormatter(unittest.TestCase):
    def setUp(self):
        self.matches = [
            FileMatch(Path("src/a.py"), 0.9846),
            FileMatch(Path("b.py"), 0.3481),
            FileMatch(Path("lib/long_name.py"), 0.0521),
        ]

    def test_bars_and_percentages(self):
        rows = ResultFormatter().format_rows(self.matches)
        cells = [[cell.strip() for cell in row.split(" | ")] for row in rows]
        self.assertEqual([c[1] for c in cells], ["+" * 10, "+" * 3, "+"])
        self.assertEqual([c[2] for c in cells], ["98.5%", "34.8%", "5.2%"])
        self.assertEqual([c[0] for c in cells], ["src/a.py", "b.py", "lib/long_name.py"])

    def test_columns_are_aligned(self):
        rows = ResultFormatter().format_rows(self.matches)
        self.assertEqual(len({len(row) for row in rows}), 1)
        self.assertEqual(len({row.index(" | ") for row in rows}), 1)
        self.assertTrue(rows[2].endswith(" 5.2%"))

    def test_empty_match_set(self):
        formatter = ResultFormatter()
        self.assertEqual(formatter.format_rows([]), [])
        self.assertEqual(formatter.render([]), NO_MATCHES_MESSAGE)

    def test_render_joins_rows(self):
        self.assertEqual(ResultFormatter().render(self.matches).count("\n"), 2)

    def test_round_half_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(0.49), 0)


class TestDetailedDiffRenderer(unittest.TestCase):
    def setUp(self):
        self.renderer = DetailedDiffRenderer()
        self.reference = numbered(f"line {i}" for i in range(1, 21))
        lines = [f"line {i}" for i in range(1, 21)]
        lines[1] = "line two"
        lines[17] = "line eighteen"
        self.candidate = numbered(lines)

    def test_identical(self):
        detailed = self.renderer.render(self.reference, self.reference)
        self.assertTrue(detailed.identical)
        self.assertEqual(detailed.groups, [])

    def test_distant_changes_form_separate_groups(self):
        detailed = self.renderer.render(self.reference, self.candidate)
        self.assertFalse(detailed.identical)
        self.assertEqual(len(detailed.groups), 2)

        first = detailed.groups[0]
        self.assertEqual([i.kind for i in first],
                         [DiffTag.EQUAL, DiffTag.DELETE, DiffTag.INSERT,
                          DiffTag.EQUAL, DiffTag.EQUAL, DiffTag.EQUAL])
        self.assertEqual((first[0].old_lineno, first[0].new_lineno), (1, 1))
        self.assertEqual((first[1].old_lineno, first[1].new_lineno), (2, None))
        self.assertEqual((first[2].old_lineno, first[2].new_lineno), (None, 2))

        second = detailed.groups[1]
        self.assertEqual(second[0].old_lineno, 15)
        self.assertEqual(second[-1].old_lineno, 20)

    def test_close_changes_share_a_group(self):
        lines = [f"line {i}" for i in range(1, 21)]
        lines[4] = "changed"
        lines[9] = "changed too"
        detailed = self.renderer.render(self.reference, numbered(lines))
        self.assertEqual(len(detailed.groups), 1)

    def _changed_at(self, *indices):
        lines = [f"line {i}" for i in range(1, 21)]
        for index in indices:
            lines[index] = f"changed {index}"
        return self.renderer.render(self.reference, numbered(lines))

    def test_six_equal_lines_keep_one_group(self):
        detailed = self._changed_at(2, 9)
        self.assertEqual(len(detailed.groups), 1)
        kept = [i.old_lineno for i in detailed.groups[0] if i.kind is DiffTag.EQUAL]
        self.assertEqual(kept, [1, 2, 4, 5, 6, 7, 8, 9, 11, 12, 13])
        text = TerminalPresenter(color=False).format_diff(detailed)
        self.assertNotIn(TerminalPresenter.SEPARATOR, text)

    def test_seven_equal_lines_split_groups(self):
        detailed = self._changed_at(2, 10)
        self.assertEqual(len(detailed.groups), 2)
        first, second = detailed.groups
        self.assertEqual(first[-1].old_lineno, 6)
        self.assertEqual(second[0].old_lineno, 8)
        lines = [i.old_lineno for g in detailed.groups for i in g]
        self.assertNotIn(7, lines)
        text = TerminalPresenter(color=False).format_diff(detailed)
        self.assertEqual(text.count(TerminalPresenter.SEPARATOR), 1)

    def test_inline_emphasis(self):
        detailed = self.renderer.render(self.reference, self.candidate)
        deleted, inserted = detailed.groups[0][1], detailed.groups[0][2]
        self.assertEqual(deleted.fragments, [(False, "line "), (True, "2")])
        self.assertEqual(inserted.fragments, [(False, "line "), (True, "two")])
        self.assertEqual(inserted.text, "line two")

    def test_pure_insert_has_no_emphasis(self):
        detailed = self.renderer.render("a\nb\n", "a\nnew\nb\n")
        inserted = [i for g in detailed.groups for i in g if i.kind is DiffTag.INSERT]
        self.assertEqual(len(inserted), 1)
        self.assertEqual(inserted[0].fragments, [(False, "new")])
        self.assertEqual(inserted[0].new_lineno, 2)

    def test_missing_newline(self):
        detailed = self.renderer.render("a\nb", "a\nc")
        deleted = [i for i in detailed.groups[0] if i.kind is DiffTag.DELETE][0]
        self.assertTrue(deleted.missing_newline)
        self.assertEqual(deleted.text, "b")

    def test_multi_line_replacement_keeps_line_count(self):
        detailed = self.renderer.render("x = 1\ny = 2\n", "x = 10\n\ny = 2 + 1\n")
        group = detailed.groups[0]
        deleted = [i for i in group if i.kind is DiffTag.DELETE]
        inserted = [i for i in group if i.kind is DiffTag.INSERT]
        self.assertEqual([i.text for i in deleted], ["x = 1", "y = 2"])
        self.assertEqual([i.text for i in inserted], ["x = 10", "", "y = 2 + 1"])
        self.assertEqual([i.new_lineno for i in inserted], [1, 2, 3])
        self.assertIn((True, "10"), inserted[0].fragments)


class TestTerminalPresenter(unittest.TestCase):
    def test_plain_output(self):
        detailed = DetailedDiffRenderer().render("a\nb\n", "a\nc\n")
        text = TerminalPresenter(color=False).format_diff(detailed)
        self.assertEqual(text.splitlines(), [
            "1    1      |a",
            "2         - |b",
            "     2    + |c",
        ])

    def test_separator_between_groups(self):
        reference = numbered(str(i) for i in range(30))
        lines = [str(i) for i in range(30)]
        lines[0], lines[29] = "first", "last"
        detailed = DetailedDiffRenderer().render(reference, numbered(lines))
        text = TerminalPresenter(color=False).format_diff(detailed)
        self.assertIn(TerminalPresenter.SEPARATOR, text)

    def test_identical_message(self):
        stream = io.StringIO()
        detailed = DetailedDiffRenderer().render("a\n", "a\n")
        TerminalPresenter(color=False, stream=stream).show_diff(detailed)
        self.assertEqual(stream.getvalue().strip(), IDENTICAL_MESSAGE)

    def test_color_codes(self):
        detailed = DetailedDiffRenderer().render("a b\n", "a c\n")
        text = TerminalPresenter(color=True).format_diff(detailed)
        self.assertIn(TerminalPresenter.RED, text)
        self.assertIn(TerminalPresenter.UNDERLINE, text)


if __name__ == '__main__':
    unittest.main()
