"""
Runner for the ansible-playbook executable.

Locates the binary once, runs it synchronously with the given arguments and
returns its captured standard output. Output can additionally be streamed to the
terminal while it is captured.
"""

import logging
import os
import shutil
import subprocess
import sys
from typing import Dict, List, Optional

from roletester.errors import AnsibleNotFoundError, PlaybookError

logger = logging.getLogger(__name__)

ANSIBLE_PLAYBOOK = "ansible-playbook"

# Cached result of the $PATH lookup
_ansible_playbook: Optional[str] = None


def find_ansible_playbook(executable: Optional[str] = None) -> str:
    """
    Locate the ansible-playbook binary.

    Args:
        executable: Explicit binary path or name (default: search $PATH once and cache)

    Returns:
        Absolute path of the binary

    Raises:
        AnsibleNotFoundError: If the binary cannot be found
    """
    global _ansible_playbook

    if executable:
        found = shutil.which(executable)
        if found is None:
            logger.error(f"executable '{executable}' was not found.")
            raise AnsibleNotFoundError(f"ansible-playbook executable not found: {executable}")
        return found

    if _ansible_playbook is None:
        found = shutil.which(ANSIBLE_PLAYBOOK)
        if found is None:
            logger.error(f"executable '{ANSIBLE_PLAYBOOK}' was not found in $PATH.")
            raise AnsibleNotFoundError(f"executable '{ANSIBLE_PLAYBOOK}' was not found in $PATH")
        _ansible_playbook = found

    return _ansible_playbook


def reset_ansible_playbook_cache() -> None:
    """Forget the cached binary location (test hook)."""
    global _ansible_playbook
    _ansible_playbook = None


def ansible_playbook(
    args: List[str],
    stdout: bool = False,
    executable: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
) -> str:
    """
    Run ansible-playbook with the given arguments.

    Args:
        args: Arguments passed verbatim after the binary
        stdout: Also stream output to the terminal (stdin and stderr are inherited)
        executable: Explicit binary path
        env: Extra environment variables for the child process

    Returns:
        Captured standard output

    Raises:
        AnsibleNotFoundError: If the binary cannot be found
        PlaybookError: If the process exits with a non-zero status
    """
    binary = find_ansible_playbook(executable)
    cmd = [binary] + list(args)

    child_env = None
    if env:
        child_env = dict(os.environ)
        child_env.update(env)

    logger.debug(f"Running: {' '.join(cmd)}")

    if stdout:
        returncode, output, stderr = _run_streaming(cmd, child_env)
    else:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            env=child_env,
        )
        returncode, output, stderr = result.returncode, result.stdout, result.stderr

    if returncode != 0:
        logger.error(f"{ANSIBLE_PLAYBOOK} exited with status {returncode}")
        raise PlaybookError(returncode, args, output=output, stderr=stderr)

    return output


def _run_streaming(cmd: List[str], env: Optional[Dict[str, str]]):
    """Run cmd, copying each stdout line to the terminal while capturing it."""
    captured = []
    with subprocess.Popen(
        cmd,
        stdout=subprocess.PIPE,
        stdin=None,
        stderr=None,
        text=True,
        encoding="utf-8",
        errors="replace",
        bufsize=1,
        env=env,
    ) as process:
        for line in process.stdout:
            captured.append(line)
            sys.stdout.write(line)
            sys.stdout.flush()
        returncode = process.wait()

    return returncode, "".join(captured), None
