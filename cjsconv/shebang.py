"""Leading ``#!`` line handling shared by both analyses."""


def split_shebang(source: str) -> tuple[str, str]:
    """Split a leading shebang line off *source*.

    Blank lines before the shebang are skipped (and dropped). The first
    non-blank line is a shebang only if it starts with ``#!``.

    Returns:
        ``(shebang, rest)`` where *shebang* keeps its trailing newline, or
        ``("", source)`` when there is no shebang.
    """
    lines = source.split("\n")
    for index, line in enumerate(lines):
        trimmed = line.strip()
        if not trimmed:
            continue
        if trimmed.startswith("#!"):
            return line + "\n", "\n".join(lines[index + 1:])
        break
    return "", source


def stripped_line_count(source: str, rest: str) -> int:
    """Number of lines ``split_shebang`` removed ahead of *rest*."""
    return source.count("\n", 0, len(source) - len(rest))
