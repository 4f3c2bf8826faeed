"""Handle on one launched child process."""

import subprocess
from dataclasses import dataclass, field


@dataclass
class ChildHandle:
    """A running (or finished) child process and the process group it leads."""

    pid: int
    pgid: int
    argv: list[str]
    process: subprocess.Popen = field(repr=False)

    @property
    def returncode(self) -> int | None:
        return self.process.returncode

    @property
    def running(self) -> bool:
        return self.process.poll() is None

    def poll(self) -> int | None:
        return self.process.poll()

    def wait(self, timeout: float | None = None) -> int:
        return self.process.wait(timeout=timeout)

    def describe(self) -> str:
        return f"{' '.join(self.argv)} (pid {self.pid})"
