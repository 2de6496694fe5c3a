"""System call numbers, argument fetching and dispatch."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Mapping

_WORD_MASK = 0xFFFFFFFF
_log = logging.getLogger(__name__)


class Syscall(enum.IntEnum):
    FORK = 1
    EXIT = 2
    WAIT = 3
    PIPE = 4
    READ = 5
    KILL = 6
    EXEC = 7
    FSTAT = 8
    CHDIR = 9
    DUP = 10
    GETPID = 11
    SBRK = 12
    SLEEP = 13
    UPTIME = 14
    OPEN = 15
    WRITE = 16
    MKNOD = 17
    UNLINK = 18
    LINK = 19
    MKDIR = 20
    CLOSE = 21
    HW = 22
    FKC = 23


class SyscallArgumentError(ValueError):
    """A system call argument lies outside the process's memory."""


class ArgumentFetcher:
    """Reads system call arguments from a process's address space.

    memory holds the process's bytes from address 0; its length is the
    process size. esp is the saved user stack pointer, which points at the
    return address, with the arguments above it.
    """

    def __init__(self, memory: bytes, esp: int) -> None:
        self.memory = memory
        self.esp = esp

    @property
    def size(self) -> int:
        return len(self.memory)

    def fetchint(self, addr: int) -> int:
        """The signed 32-bit integer at addr."""
        if addr >= self.size or addr + 4 > self.size:
            raise SyscallArgumentError(f"int at 0x{addr:x} lies outside the process")
        return int.from_bytes(self.memory[addr:addr + 4], "little", signed=True)

    def fetchstr(self, addr: int) -> bytes:
        """The NUL-terminated string at addr, without its NUL."""
        if addr >= self.size:
            raise SyscallArgumentError(f"string at 0x{addr:x} lies outside the process")
        end = bytes(self.memory[addr:]).find(b"\0")
        if end < 0:
            raise SyscallArgumentError(f"string at 0x{addr:x} is not terminated")
        return bytes(self.memory[addr:addr + end])

    def argint(self, n: int) -> int:
        """The nth 32-bit argument."""
        return self.fetchint((self.esp + 4 + 4 * n) & _WORD_MASK)

    def argptr(self, n: int, size: int) -> int:
        """The nth argument as the address of size bytes within the process."""
        addr = self.argint(n) & _WORD_MASK
        if size < 0 or addr >= self.size or addr + size > self.size:
            raise SyscallArgumentError(f"buffer 0x{addr:x}+{size} lies outside the process")
        return addr

    def argstr(self, n: int) -> bytes:
        """The nth argument as a NUL-terminated string."""
        return self.fetchstr(self.argint(n) & _WORD_MASK)


class SyscallDispatcher:
    """Routes system call numbers to their handlers."""

    def __init__(self, handlers: Mapping[int, Callable[[], int]]) -> None:
        self.handlers = {int(num): handler for num, handler in handlers.items()}

    def dispatch(self, num: int) -> int:
        """Run the handler for num; -1 for an unknown call or bad arguments."""
        handler = self.handlers.get(num) if num > 0 else None
        if handler is None:
            _log.warning("unknown sys call %d", num)
            return -1
        try:
            return handler()
        except SyscallArgumentError:
            return -1


class ForkCounter:
    """Counts fork calls for the fkc system call."""

    def __init__(self) -> None:
        self.count = 0

    def record_fork(self) -> None:
        self.count += 1

    def fkc(self, arg: int) -> int:
        """With arg 0, reset the count and return 0; otherwise return the count."""
        if arg == 0:
            self.count = 0
            return 0
        return self.count