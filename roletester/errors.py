"""Exceptions raised by roletester."""

from typing import List, Optional


class RoleTesterError(RuntimeError):
    """Base class for roletester errors."""


class AnsibleNotFoundError(RoleTesterError):
    """The ansible-playbook executable could not be located."""


class PlaybookError(RoleTesterError):
    """ansible-playbook exited with a non-zero status."""

    def __init__(self, returncode: int, args: List[str], output: str = "", stderr: Optional[str] = None):
        self.returncode = returncode
        self.args_list = list(args)
        self.output = output
        self.stderr = stderr
        super().__init__(f"ansible-playbook exited with status {returncode}")


class ContainerError(RoleTesterError):
    """A docker command failed or docker is unavailable."""
