"""Logical line counting."""

from typing import Tuple


def _strip_comments(line: str, in_block: bool) -> Tuple[str, bool]:
    """Remove comment text from one line.

    Returns the code left on the line and whether a block comment is still
    open at the end of it.
    """
    code = []
    i = 0
    n = len(line)
    while i < n:
        if in_block:
            end = line.find("*/", i)
            if end == -1:
                return "".join(code), True
            in_block = False
            i = end + 2
            continue

        line_comment = line.find("//", i)
        block_comment = line.find("/*", i)

        if block_comment != -1 and (line_comment == -1 or block_comment < line_comment):
            code.append(line[i:block_comment])
            in_block = True
            i = block_comment + 2
        elif line_comment != -1:
            code.append(line[i:line_comment])
            return "".join(code), False
        else:
            code.append(line[i:])
            break

    return "".join(code), in_block


def count_logical_lines(text: str) -> int:
    """Count lines that still contain code once comments are removed.

    Blank lines, ``//`` comment lines and lines wholly inside a ``/* */``
    block do not count. A line with code before or after an inline block
    comment counts once.

    Example:
        >>> count_logical_lines("// c\\nfn foo() { /* b */ let x = 1; }\\n\\n")
        1
    """
    count = 0
    in_block = False
    for line in text.split("\n"):
        code, in_block = _strip_comments(line, in_block)
        if code.strip():
            count += 1
    return count
