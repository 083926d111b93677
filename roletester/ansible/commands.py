"""Argument lists for ansible-playbook invocations.

The binary itself is not part of these lists; the runner prepends it.
"""

import posixpath
from typing import List

# Connection plugin used to reach the test target by container ID
CONNECTION_PLUGIN = "docker"
VERBOSE_FLAG = "-vvvv"


def resolve_playbook(playbook: str, remote_path: str = "") -> str:
    """Resolve the playbook path against the role directory.

    Absolute paths are used as given. Relative paths are joined under
    remote_path, unless they already start with it.
    """
    if posixpath.isabs(playbook) or not remote_path:
        return playbook

    normalized_root = remote_path.rstrip("/") + "/"
    if playbook.startswith(normalized_root):
        return playbook
    if playbook.startswith("./"):
        playbook = playbook[2:]
    return posixpath.join(remote_path, playbook)


def list_hosts_args(playbook: str) -> List[str]:
    """Arguments listing the hosts a playbook targets."""
    return [playbook, "--list-hosts"]


def target_args(
    playbook: str,
    container_id: str,
    verbose: bool = False,
    syntax_check: bool = False,
) -> List[str]:
    """Arguments running a playbook against a single container.

    Args:
        playbook: Playbook path
        container_id: ID of the target container
        verbose: Append -vvvv
        syntax_check: Only parse the playbook (--syntax-check)

    Returns:
        Argument list, e.g. ['site.yml', '-i', 'abc123,', '-c', 'docker']
    """
    if not container_id:
        raise ValueError("A container ID is required to target a container")

    # Trailing comma turns the ID into an inline inventory of one host
    args = [playbook, "-i", f"{container_id},", "-c", CONNECTION_PLUGIN]

    if syntax_check:
        args.append("--syntax-check")
    if verbose:
        args.append(VERBOSE_FLAG)
    return args
