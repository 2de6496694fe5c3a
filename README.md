# kernsim

kernsim models the core pieces of a small x86 teaching kernel in plain Python.
It needs no emulator and no native code. You can use it to inspect, test and
experiment with page tables, segment and gate descriptors, ELF headers,
system-call argument checks and locks. It also has a few user-space tools: a
command-line parser, a first-fit memory allocator, C-style string helpers and
a word counter.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

| Module             | Contents |
|--------------------|----------|
| `kernsim.mmu`      | Memory-layout and paging constants. Address helpers: `pdx`, `ptx`, `pgaddr`, `pgroundup`, `pgrounddown`, `pte_addr`, `pte_flags`, `v2p` and `p2v`. `SegmentDescriptor` (`segment`, `segment16`) and `GateDescriptor` (`make`), each of which packs to and unpacks from its 8 hardware bytes |
| `kernsim.params`   | System limits such as `NPROC`, `NOFILE` and `MAXARG`. The `OpenMode` flags, the `FileType` enum, and the `Stat` record with `pack`/`unpack` |
| `kernsim.elf`      | `ElfHeader` and `ProgramHeader` with `parse`/`pack`, `read_program_headers`, the `ProgFlag` bits and `ElfFormatError` |
| `kernsim.traps`    | The `Trap` and `Irq` numbers, and `build_idt`, which turns 256 handler addresses into the interrupt descriptor table. In that table the system-call vector is a user-callable trap gate |
| `kernsim.cstrings` | `memcmp`, `memmove`, `strncmp`, `strncpy`, `safestrcpy`, `strlen`, `strcmp`, `strchr`, `atoi` and `gets`, with C semantics over bytes |
| `kernsim.wc`       | `count_words`, which returns a `WordCount`, and the `kernsim-wc` command |
| `kernsim.umalloc`  | `Allocator`, a first-fit, address-ordered free-list allocator over a simulated heap. It can take an optional size limit, and `malloc` raises `MemoryError` once that limit is reached |
| `kernsim.shell`    | `parse_command` builds a tree of `ExecCmd`, `RedirCmd`, `PipeCmd`, `ListCmd` and `BackCmd` nodes. The module also has `Tokenizer` and `ShellSyntaxError` |
| `kernsim.vm`       | `PhysicalMemory`, `PageDirectory`, `KernelMapping` and `setup_kvm`, giving two-level paging over simulated physical memory |
| `kernsim.syscall`  | The `Syscall` numbers, plus `ArgumentFetcher`, `SyscallDispatcher`, `ForkCounter` and `SyscallArgumentError` |
| `kernsim.locks`    | `SpinLock`, which is held by a thread and works as a context manager. `SleepLock`, which is held by a process id. `LockError` |

## Examples

Parse a shell command line:

```python
from kernsim.shell import parse_command

tree = parse_command("cat < in.txt | grep foo > out.txt ; echo done &")
```

Work with page tables:

```python
from kernsim.vm import PhysicalMemory, PageDirectory

memory = PhysicalMemory(64)
pgdir = PageDirectory(memory)
size = pgdir.alloc_uvm(0, 8192)
pgdir.copyout(100, b"hello")
assert pgdir.read_user(100, 5) == b"hello"
```

Dispatch a system call:

```python
from kernsim.syscall import ForkCounter, Syscall, SyscallDispatcher

counter = ForkCounter()
dispatcher = SyscallDispatcher({Syscall.FKC: lambda: counter.fkc(1)})
assert dispatcher.dispatch(Syscall.FKC) == 0
assert dispatcher.dispatch(99) == -1
```

Count lines, words and bytes:

```
kernsim-wc README.md
```

With no file arguments, `kernsim-wc` reads standard input. For each input it
prints `lines words bytes name`.

## What it does not do

kernsim models data structures and checks. It is not a running system:

- It has no file system, block cache or disk log.
- It has no process table, scheduler, `fork`, `exec` or `wait`.
- The shell module parses command lines but does not run them.
- The system-call dispatcher only routes numbers to handlers that you supply.
  The package has no handlers for files or processes.