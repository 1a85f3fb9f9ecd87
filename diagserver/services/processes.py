from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import psutil

from diagserver.errors import ProcessListingError


@dataclass(frozen=True)
class ProcessInfo:
    pid: int
    executable: str
    args: list[str] = field(default_factory=list)


class ProcessLister(Protocol):
    def list_processes(self) -> list[ProcessInfo]:
        """Snapshot the process table; raise ProcessListingError if it cannot be read."""


class PsutilProcessLister:
    """Portable lister; fields psutil cannot read come back empty."""

    def list_processes(self) -> list[ProcessInfo]:
        try:
            procs = list(psutil.process_iter(["pid", "name", "cmdline"]))
        except (OSError, psutil.Error) as exc:
            raise ProcessListingError(str(exc)) from exc

        return [
            ProcessInfo(
                pid=int(proc.info["pid"]),
                executable=proc.info.get("name") or "",
                args=list(proc.info.get("cmdline") or []),
            )
            for proc in procs
        ]


def read_cmdline(path: Path) -> list[str]:
    try:
        data = path.read_bytes()
    except OSError:
        return []
    data = data.rstrip(b"\x00")
    if not data:
        return []
    return [part.decode("utf-8", errors="replace") for part in data.split(b"\x00")]


def _parse_stat_name(stat: str) -> str:
    # "<pid> (<comm>) <state> ..."; comm itself may contain parentheses.
    start = stat.find("(")
    end = stat.rfind(")")
    if start == -1 or end <= start:
        return ""
    return stat[start + 1 : end]


class ProcfsProcessLister:
    """Linux lister reading /proc/<pid>/stat and /proc/<pid>/cmdline directly."""

    def __init__(self, proc_root: str | Path = "/proc") -> None:
        self.proc_root = Path(proc_root)

    def list_processes(self) -> list[ProcessInfo]:
        try:
            entries = [entry for entry in self.proc_root.iterdir() if entry.name.isdigit()]
        except OSError as exc:
            raise ProcessListingError(f"cannot list {self.proc_root}: {exc}") from exc

        processes: list[ProcessInfo] = []
        for entry in sorted(entries, key=lambda p: int(p.name)):
            try:
                stat = (entry / "stat").read_text(encoding="utf-8", errors="replace")
            except OSError:
                # Exited between the directory listing and this read.
                continue
            processes.append(
                ProcessInfo(
                    pid=int(entry.name),
                    executable=_parse_stat_name(stat),
                    args=read_cmdline(entry / "cmdline"),
                )
            )
        return processes


def get_process_lister(backend: str = "psutil", proc_root: str | Path = "/proc") -> ProcessLister:
    if backend == "psutil":
        return PsutilProcessLister()
    if backend == "procfs":
        return ProcfsProcessLister(proc_root)
    raise ValueError(f"Unknown process backend: {backend}")


def format_args(args: list[str]) -> str:
    return "[" + " ".join(args) + "]"
