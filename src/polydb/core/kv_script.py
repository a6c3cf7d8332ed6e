"""Tokenizer for multi-line key-value command scripts.

One physical line is one command. Blank lines and comment lines produce
no entry. Within a line, whitespace separates tokens outside double
quotes, a double quote toggles quoting, and a backslash makes the next
character literal in or out of quotes.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

COMMENT_MARKERS = ("#", "--")


class KvCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    line: str
    args: tuple[str, ...]

    @property
    def name(self) -> str:
        return self.args[0]


def tokenize_line(line: str) -> list[str]:
    tokens: list[str] = []
    current: list[str] = []
    in_quotes = False
    escape = False

    for ch in line:
        if escape:
            current.append(ch)
            escape = False
        elif ch == "\\":
            escape = True
        elif ch == '"':
            in_quotes = not in_quotes
        elif ch.isspace() and not in_quotes:
            if current:
                tokens.append("".join(current))
                current.clear()
        else:
            current.append(ch)

    if current:
        tokens.append("".join(current))
    return tokens


def _physical_lines(script: str) -> list[str]:
    return [line.removesuffix("\r") for line in script.split("\n")]


def tokenize(script: str) -> list[KvCommand]:
    """Split ``script`` into commands, preserving line order."""
    commands: list[KvCommand] = []
    for raw in _physical_lines(script):
        line = raw.strip()
        if not line or line.startswith(COMMENT_MARKERS):
            continue
        args = tokenize_line(line)
        if not args:
            continue
        commands.append(KvCommand(line=line, args=tuple(args)))
    return commands
