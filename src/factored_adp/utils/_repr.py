from __future__ import annotations
from typing import Optional, Sequence
import shutil


PRINT_WIDTH, PRINT_HEIGHT = shutil.get_terminal_size((80, 20))


def create_table(name: str,
                 headers: Sequence[str],
                 rows: Sequence[Sequence[str]],
                 width: Optional[int] = None,
                 height: Optional[int] = None) -> list[str]:
        # Prepare ...
        if width is None:
            width = PRINT_WIDTH

        if height is None:
            height = PRINT_HEIGHT

        if height <= 6:
            raise ValueError("Height too small")

        index_width = max(len(str(len(rows))) + 2, 3)  # Need to be able to fit "var"
        index_column_width = index_width + 2
        content_column_width = (width - index_column_width - len(headers)) // len(headers)
        content_width = content_column_width - 2

        #  Create repr lines ...
        repr_lines = []
        repr_lines.append(f"{name}(")
        repr_lines.append(header_row := create_row("var", *headers, index_width=index_width, content_width=content_width))
        repr_lines.append("=" * len(header_row))

        shown = len(rows)
        if len(rows) + 4 > height:  # Name, header, rule, skip row and closing bracket must fit
            shown = height - 5

        head = shown - shown // 2
        for index, row in enumerate(rows[:head]):
            repr_lines.append(create_row(f"{index} ", *row, index_width=index_width, content_width=content_width))

        if shown < len(rows):
            repr_lines.append(create_row('... ', *(['...'] * len(headers)), index_width=index_width, content_width=content_width))

        tail_start = len(rows) - (shown - head)
        for index, row in enumerate(rows[tail_start:], tail_start):
            repr_lines.append(create_row(f"{index} ", *row, index_width=index_width, content_width=content_width))

        repr_lines.append(")")

        return repr_lines


def create_row(index: str, *content: str, index_width: int, content_width: int) -> str:

    row = " " + " | ".join([
        f"{index : >{index_width}}",
        *[f"{shorten_content(content, content_width) : ^{content_width}}" for content in content]
    ])

    return row


def shorten_content(content: str, width: int, placeholder: str = "...") -> str:
    if width < len(placeholder) + 1:
        raise ValueError("Width too small")

    if len(content) > width:
        ini_width = max(width - 1 - len(placeholder), 0)
        return content[:ini_width] + placeholder + content[-1:]
    else:
        return content


def tag_repr(tag: Sequence[int]) -> str:
    return "{" + ", ".join(map(str, tag)) + "}" if tag else "{}"
