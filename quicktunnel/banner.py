"""
Bordered text boxes for operator-facing announcements.
"""

from typing import List


def ascii_box(lines: List[str], padding: int) -> List[str]:
    """
    Render lines inside a box drawn with '+', '-' and '|'.

    Args:
        lines: Text lines to display
        padding: Spaces between the border and the text on each side

    Returns:
        Box lines, top and bottom border included
    """
    width = max((len(line) for line in lines), default=0)
    spacer = ' ' * padding
    border = '+' + '-' * (width + padding * 2) + '+'

    box = [border]
    for line in lines:
        box.append('|' + spacer + line.ljust(width) + spacer + '|')
    box.append(border)
    return box
