"""Invocation of ansible-playbook and scraping of its output."""

from .commands import list_hosts_args, resolve_playbook, target_args
from .parsing import idempotence_result, parse_hosts, parse_recap
from .runner import ansible_playbook, find_ansible_playbook
from .tester import RoleTester

__all__ = [
    "list_hosts_args",
    "resolve_playbook",
    "target_args",
    "idempotence_result",
    "parse_hosts",
    "parse_recap",
    "ansible_playbook",
    "find_ansible_playbook",
    "RoleTester",
]
