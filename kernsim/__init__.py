"""Pure-Python models of a small x86 teaching kernel's paging, descriptors, ELF headers,
system-call checks and locks, with a shell parser, an allocator, string helpers and wc."""

__version__ = "0.1.0"