"""Tests for the pipe-table codec: decode, encode and cell text storage."""

from md_table_editor.services import codec
from md_spreadsheet_parser import Table


class TestDecode:
    def test_simple_table(self):
        grid = codec.decode("| A | B |\n|---|---|\n| 1 | 2 |\n")
        assert grid == [["A", "B"], ["1", "2"]]

    def test_single_line_is_not_a_table(self):
        assert codec.decode("| A | B |") == []
        assert codec.decode("") == []

    def test_surrounding_blank_lines_ignored(self):
        text = "\n| Header 1 | Header 2 |\n|---|---|\n| Row 1 Col 1 | Row 1 Col 2 |\n"
        grid = codec.decode(text)
        assert len(grid) == 2
        assert grid[0][0] == "Header 1"

    def test_alignment_markers_removed(self):
        grid = codec.decode("| L | C | R |\n|:---|:---:|---:|\n| a | b | c |")
        assert grid == [["L", "C", "R"], ["a", "b", "c"]]

    def test_without_separator_keeps_all_rows(self):
        grid = codec.decode("| a | b |\n| c | d |")
        assert grid == [["a", "b"], ["c", "d"]]

    def test_without_outer_pipes(self):
        grid = codec.decode("A | B\n--- | ---\n1 | 2")
        assert grid == [["A", "B"], ["1", "2"]]

    def test_crlf_line_endings(self):
        grid = codec.decode("| A | B |\r\n|---|---|\r\n| 1 | 2 |\r\n")
        assert grid == [["A", "B"], ["1", "2"]]

    def test_line_without_pipes_becomes_single_cell(self):
        grid = codec.decode("| A |\n|---|\nplain text")
        assert grid == [["A"], ["plain text"]]

    def test_ragged_rows_are_kept_as_is(self):
        grid = codec.decode("| A | B |\n|---|---|\n| 1 |")
        assert grid == [["A", "B"], ["1"]]

    def test_row_count_and_width_for_well_formed_table(self):
        text = "| a | b | c |\n|---|---|---|\n| 1 | 2 | 3 |\n| 4 | 5 | 6 |\n| 7 | 8 | 9 |"
        grid = codec.decode(text)
        assert len(grid) == 4
        assert all(len(row) == 3 for row in grid)

    def test_empty_cells_preserved(self):
        grid = codec.decode("| A | B |\n|---|---|\n|   | 2 |")
        assert grid == [["A", "B"], ["", "2"]]


class TestEncode:
    def test_minimum_width_three(self):
        text = codec.encode([["A", "B"], ["1", "2"]])
        assert text == "| A   | B   |\n| --- | --- |\n| 1   | 2   |\n"

    def test_width_follows_longest_cell(self):
        text = codec.encode([["Name", "X"], ["Alexander", "1"]])
        assert text == (
            "| Name      | X   |\n"
            "| --------- | --- |\n"
            "| Alexander | 1   |\n"
        )

    def test_header_only(self):
        assert codec.encode([["A"]]) == "| A   |\n| --- |\n"

    def test_ragged_rows_padded(self):
        text = codec.encode([["A", "B"], ["1"]])
        assert text == "| A   | B   |\n| --- | --- |\n| 1   |     |\n"

    def test_empty_grid(self):
        assert codec.encode([]) == ""

    def test_alignment_markers_not_preserved(self):
        text = codec.encode(codec.decode("| A |\n|:---:|\n| 1 |"))
        assert ":" not in text

    def test_structural_round_trip(self):
        grid = [["Item", "Qty", "Note"], ["Apple", "3", ""], ["Pear", "10", "ripe<br>soft"]]
        assert codec.decode(codec.encode(grid)) == grid

    def test_normalizes_spacing(self):
        original = "|A|B|\n|-|-|\n|1|2|"
        encoded = codec.encode(codec.decode(original))
        assert encoded != original
        assert codec.decode(encoded) == codec.decode(original)


class TestLineBreakToken:
    def test_newline_stored_as_token(self):
        assert codec.to_storage("line 1\nline 2") == "line 1<br>line 2"
        assert codec.to_display("line 1<br>line 2") == "line 1\nline 2"

    def test_crlf_normalized(self):
        assert codec.to_storage("a\r\nb\rc") == "a<br>b<br>c"

    def test_literal_token_is_escaped(self):
        assert codec.to_storage("use <br> here") == "use &lt;br> here"
        assert codec.to_display("use &lt;br> here") == "use <br> here"

    def test_escaped_literal_is_escaped_again(self):
        assert codec.to_storage("&lt;br>") == "&amp;lt;br>"
        assert codec.to_storage("&amp;lt;br>") == "&amp;amp;lt;br>"
        assert codec.to_display("&amp;amp;lt;br>") == "&amp;lt;br>"

    def test_display_reverses_storage(self):
        for value in [
            "",
            "plain",
            "a\nb",
            "<br>",
            "x\n<br>&lt;br>&amp;lt;br>\n",
            "AT&T <b>bold</b>",
        ]:
            assert codec.to_display(codec.to_storage(value)) == value

    def test_stored_value_is_single_line(self):
        assert "\n" not in codec.to_storage("a\nb\nc")


class TestNormalize:
    def test_empty_grid_becomes_default(self):
        assert codec.normalize([]) == [["", ""], ["", ""]]

    def test_short_rows_padded_to_header(self):
        assert codec.normalize([["A", "B"], ["1"]]) == [["A", "B"], ["1", ""]]

    def test_long_rows_widen_header(self):
        assert codec.normalize([["A"], ["1", "2"]]) == [["A", ""], ["1", "2"]]

    def test_does_not_alias_input(self):
        grid = [["A"], ["1"]]
        result = codec.normalize(grid)
        result[0][0] = "changed"
        assert grid[0][0] == "A"


class TestTableConversion:
    def test_grid_to_table(self):
        table = codec.grid_to_table([["A", "B"], ["1", "2"]])
        assert isinstance(table, Table)
        assert table.headers == ["A", "B"]
        assert table.rows == [["1", "2"]]

    def test_table_to_grid(self):
        table = Table(headers=["A"], rows=[["1"], ["2"]], metadata={})
        assert codec.table_to_grid(table) == [["A"], ["1"], ["2"]]

    def test_update_keeps_table_fields(self):
        table = Table(headers=["A"], rows=[["1"]], metadata={}, name="Table 1")
        updated = codec.grid_to_table([["B"], ["2"]], table)
        assert updated.name == "Table 1"
        assert updated.headers == ["B"]

    def test_grids_equal(self):
        assert codec.grids_equal([["A"], ["1"]], [["A"], ["1"]])
        assert not codec.grids_equal([["A"], ["1"]], [["A"], ["2"]])
        assert not codec.grids_equal([["A"]], [["A"], ["1"]])


class TestMergeGrids:
    BASE = [["A", "B"], ["1", "2"]]

    def test_only_one_side_changed(self):
        edited = [["A", "B"], ["1", "x"]]
        assert codec.merge_grids(self.BASE, self.BASE, edited) == edited
        assert codec.merge_grids(self.BASE, edited, self.BASE) == edited

    def test_cell_edit_replayed_onto_added_row(self):
        ours = [["A", "B"], ["x", "2"]]
        theirs = [["A", "B"], ["1", "2"], ["3", "4"]]
        assert codec.merge_grids(self.BASE, ours, theirs) == [
            ["A", "B"],
            ["x", "2"],
            ["3", "4"],
        ]

    def test_text_cell_edit_replayed_onto_added_column(self):
        ours = [["A", "B", ""], ["1", "2", ""]]
        theirs = [["A", "B"], ["1", "two"]]
        assert codec.merge_grids(self.BASE, ours, theirs) == [
            ["A", "B", ""],
            ["1", "two", ""],
        ]

    def test_edits_to_different_cells_combine(self):
        ours = [["A", "B"], ["x", "2"]]
        theirs = [["A", "C"], ["1", "2"]]
        assert codec.merge_grids(self.BASE, ours, theirs) == [["A", "C"], ["x", "2"]]

    def test_both_sides_restructured(self):
        ours = [["A", "B"], ["1", "2"], ["", ""]]
        theirs = [["A"], ["1"]]
        assert codec.merge_grids(self.BASE, ours, theirs) is None
