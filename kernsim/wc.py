"""Count lines, words and characters."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import BinaryIO

_WHITESPACE = frozenset(b" \r\t\n\v")
_CHUNK = 512


@dataclass(frozen=True)
class WordCount:
    """Line, word and character totals."""

    lines: int = 0
    words: int = 0
    chars: int = 0

    def format(self, name: str) -> str:
        return f"{self.lines} {self.words} {self.chars} {name}"


def count_words(stream: BinaryIO) -> WordCount:
    """Count the lines, words and bytes of a binary stream."""
    lines = words = chars = 0
    in_word = False
    for chunk in iter(lambda: stream.read(_CHUNK), b""):
        for byte in chunk:
            chars += 1
            if byte == 0x0A:
                lines += 1
            if byte in _WHITESPACE:
                in_word = False
            elif not in_word:
                words += 1
                in_word = True
    return WordCount(lines, words, chars)


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if not args:
        try:
            print(count_words(sys.stdin.buffer).format(""))
        except OSError:
            print("wc: read error")
            return 1
        return 0
    for path in args:
        try:
            stream = open(path, "rb")
        except OSError:
            print(f"wc: cannot open {path}")
            return 1
        with stream:
            try:
                result = count_words(stream)
            except OSError:
                print("wc: read error")
                return 1
        print(result.format(path))
    return 0


if __name__ == "__main__":
    sys.exit(main())