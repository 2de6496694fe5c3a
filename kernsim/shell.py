"""Parser for the shell's command language."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple, Union

from kernsim.params import OpenMode

WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"
MAXARGS = 10


class ShellSyntaxError(ValueError):
    """Raised for a command line that cannot be parsed."""


@dataclass
class ExecCmd:
    argv: list[str] = field(default_factory=list)


@dataclass
class RedirCmd:
    cmd: "Command"
    file: str
    mode: OpenMode
    fd: int


@dataclass
class PipeCmd:
    left: "Command"
    right: "Command"


@dataclass
class ListCmd:
    left: "Command"
    right: "Command"


@dataclass
class BackCmd:
    cmd: "Command"


Command = Union[ExecCmd, RedirCmd, PipeCmd, ListCmd, BackCmd]


class Token(NamedTuple):
    """kind is a symbol, '+' for '>>', 'a' for a word, or '' at the end."""

    kind: str
    text: str


class Tokenizer:
    """Splits a command line into words and operators."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    @property
    def rest(self) -> str:
        return self.text[self.pos:]

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in WHITESPACE:
            self.pos += 1

    def peek(self, toks: str) -> bool:
        """Skip whitespace; tell whether the next character is one of toks."""
        self._skip_whitespace()
        return self.pos < len(self.text) and self.text[self.pos] in toks

    def next_token(self) -> Token:
        self._skip_whitespace()
        text = self.text
        start = self.pos
        if start >= len(text):
            kind = ""
        else:
            ch = text[start]
            self.pos += 1
            if ch in "|();&<":
                kind = ch
            elif ch == ">":
                kind = ">"
                if self.pos < len(text) and text[self.pos] == ">":
                    kind = "+"
                    self.pos += 1
            else:
                kind = "a"
                while (self.pos < len(text) and text[self.pos] not in WHITESPACE
                       and text[self.pos] not in SYMBOLS):
                    self.pos += 1
        token = Token(kind, text[start:self.pos])
        self._skip_whitespace()
        return token


def parse_command(text: str) -> Command:
    """Parse a whole command line."""
    tokens = Tokenizer(text)
    cmd = _parse_line(tokens)
    tokens.peek("")
    if tokens.rest:
        raise ShellSyntaxError(f"leftovers: {tokens.rest}")
    return cmd


def _parse_line(tokens: Tokenizer) -> Command:
    cmd = _parse_pipe(tokens)
    while tokens.peek("&"):
        tokens.next_token()
        cmd = BackCmd(cmd)
    if tokens.peek(";"):
        tokens.next_token()
        cmd = ListCmd(cmd, _parse_line(tokens))
    return cmd


def _parse_pipe(tokens: Tokenizer) -> Command:
    cmd = _parse_exec(tokens)
    if tokens.peek("|"):
        tokens.next_token()
        cmd = PipeCmd(cmd, _parse_pipe(tokens))
    return cmd


_REDIRECTIONS = {
    "<": (OpenMode.RDONLY, 0),
    ">": (OpenMode.WRONLY | OpenMode.CREATE, 1),
    "+": (OpenMode.WRONLY | OpenMode.CREATE, 1),
}


def _parse_redirs(cmd: Command, tokens: Tokenizer) -> Command:
    while tokens.peek("<>"):
        operator = tokens.next_token()
        target = tokens.next_token()
        if target.kind != "a":
            raise ShellSyntaxError("missing file for redirection")
        mode, fd = _REDIRECTIONS[operator.kind]
        cmd = RedirCmd(cmd, target.text, mode, fd)
    return cmd


def _parse_block(tokens: Tokenizer) -> Command:
    if not tokens.peek("("):
        raise ShellSyntaxError("parseblock")
    tokens.next_token()
    cmd = _parse_line(tokens)
    if not tokens.peek(")"):
        raise ShellSyntaxError("syntax - missing )")
    tokens.next_token()
    return _parse_redirs(cmd, tokens)


def _parse_exec(tokens: Tokenizer) -> Command:
    if tokens.peek("("):
        return _parse_block(tokens)
    exec_cmd = ExecCmd()
    cmd = _parse_redirs(exec_cmd, tokens)
    while not tokens.peek("|)&;"):
        token = tokens.next_token()
        if token.kind == "":
            break
        if token.kind != "a":
            raise ShellSyntaxError("syntax")
        exec_cmd.argv.append(token.text)
        if len(exec_cmd.argv) >= MAXARGS:
            raise ShellSyntaxError("too many args")
        cmd = _parse_redirs(cmd, tokens)
    return cmd