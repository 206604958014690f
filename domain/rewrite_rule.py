import re

from domain.errors import ConfigError
from domain.models import RewriteRule


_LINE_TERMINATORS = ("\r\n", "\n", "\r")


def _compile(pattern: str, field_name: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as error:
        raise ConfigError(f"Invalid {field_name} pattern '{pattern}': {error}") from error


def build_rewrite_rule(line_regex: str, replacement_format: str, file_pattern: str) -> RewriteRule:
    # Fail before the first poll when the format cannot take exactly one value.
    try:
        replacement_format % "0.0.0"
    except (TypeError, ValueError) as error:
        raise ConfigError(
            f"Invalid replacement format '{replacement_format}': expects a single %s placeholder"
        ) from error

    return RewriteRule(
        line_regex=_compile(line_regex, "line"),
        replacement_format=replacement_format,
        file_pattern=_compile(file_pattern, "file name"),
    )


def render_replacement(rule: RewriteRule, new_value: str) -> str:
    rendered = rule.replacement_format % new_value
    # The line keeps its own terminator, so a trailing newline in the format is dropped.
    for terminator in _LINE_TERMINATORS:
        if rendered.endswith(terminator):
            return rendered[: -len(terminator)]
    return rendered


def matches_file_name(rule: RewriteRule, file_name: str) -> bool:
    return rule.file_pattern.search(file_name) is not None


def _split_terminator(line: str) -> tuple[str, str]:
    for terminator in _LINE_TERMINATORS:
        if line.endswith(terminator):
            return line[: -len(terminator)], terminator
    return line, ""


def substitute_all(pattern: re.Pattern[str], text: str, replacement: str) -> str:
    """Replace every match of ``pattern`` in ``text`` with the literal ``replacement``.

    An empty match that directly follows a previous match is skipped, so a
    pattern such as ``.*`` replaces a whole line once instead of twice.
    """
    pieces: list[str] = []
    cursor = 0
    previous_end = -1
    for match in pattern.finditer(text):
        start, end = match.span()
        if start == end and start == previous_end:
            continue
        pieces.append(text[cursor:start])
        pieces.append(replacement)
        cursor = end
        previous_end = end
    pieces.append(text[cursor:])
    return "".join(pieces)


def rewrite_line(rule: RewriteRule, line: str, replacement: str) -> str:
    body, terminator = _split_terminator(line)
    return substitute_all(rule.line_regex, body, replacement) + terminator


def rewrite_lines(rule: RewriteRule, lines: list[str], new_value: str) -> tuple[list[str], bool]:
    replacement = render_replacement(rule, new_value)
    rewritten_lines = [rewrite_line(rule, line, replacement) for line in lines]
    return rewritten_lines, rewritten_lines != lines
