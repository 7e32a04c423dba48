"""Tests for the announcement box."""

from quicktunnel.banner import ascii_box


def test_box_dimensions():
    box = ascii_box(["a", "bb"], 1)

    assert box == [
        "+----+",
        "| a  |",
        "| bb |",
        "+----+",
    ]
    border_len = max(len("a"), len("bb")) + 2 * 1 + 2
    assert len(box[0]) == len(box[-1]) == border_len
    assert all(len(line) == border_len for line in box)


def test_content_lines_padded_before_border():
    box = ascii_box(["short", "a much longer line"], 2)
    for line in box[1:-1]:
        assert line.startswith("|  ")
        assert line.endswith("  |")
    assert len({len(line) for line in box}) == 1


def test_empty_lines():
    assert ascii_box([], 1) == ["+--+", "+--+"]
