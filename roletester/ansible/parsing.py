"""
Scraping of human-readable ansible-playbook output.

ansible-playbook has no machine-readable host listing or recap on stdout by
default, so both are read back from the text it prints.
"""

import re
from typing import Dict, List

from roletester.schemas import RecapStats

HOST_PATTERN_MARKER = "pattern: ["

# "web1  : ok=3    changed=0    unreachable=0    failed=0 ..."
_RECAP_LINE = re.compile(r"^\s*(?P<host>\S+)\s*:\s*(?P<counters>(?:\w+=\d+\s*)+)$")
_COUNTER = re.compile(r"(\w+)=(\d+)")
_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi(output: str) -> str:
    """Remove ANSI color codes (ANSIBLE_FORCE_COLOR output)."""
    return _ANSI_ESCAPE.sub("", output)


def parse_hosts(output: str) -> List[str]:
    """
    Extract host patterns from `ansible-playbook --list-hosts` output.

    Looks for lines like "pattern: [u'all']" or "pattern: ['web', 'db']".

    Args:
        output: Captured standard output

    Returns:
        Host patterns in order of appearance (may be empty)
    """
    hosts = []

    for line in strip_ansi(output).splitlines():
        if HOST_PATTERN_MARKER not in line:
            continue
        line = line.replace(HOST_PATTERN_MARKER, "")
        line = line.replace("]", "")
        line = line.lstrip(" ")
        line = line.replace("u'", "'")
        for host in line.split(","):
            host = host.replace("'", "").replace('"', "").strip()
            if host:
                hosts.append(host)

    return hosts


def parse_recap(output: str) -> Dict[str, RecapStats]:
    """
    Parse the PLAY RECAP block into per-host counters.

    Args:
        output: Captured standard output of a playbook run

    Returns:
        Mapping of host to its recap counters; empty if no recap was printed
    """
    recap = {}
    in_recap = False

    for line in strip_ansi(output).splitlines():
        if line.startswith("PLAY RECAP"):
            in_recap = True
            continue
        if not in_recap:
            continue
        if not line.strip():
            continue

        match = _RECAP_LINE.match(line)
        if not match:
            # Anything after the recap block (profile_tasks timings, etc.)
            in_recap = False
            continue

        counters = {
            name: int(value)
            for name, value in _COUNTER.findall(match.group("counters"))
            if name in RecapStats.model_fields
        }
        recap[match.group("host")] = RecapStats(**counters)

    return recap


def idempotence_result(output: str) -> bool:
    """
    Decide whether a playbook run was idempotent.

    Every host in the recap must report changed=0, failed=0 and unreachable=0.
    Output without any recap counts as a failure.
    """
    recap = parse_recap(output)
    if not recap:
        return False
    return all(
        stats.changed == 0 and stats.failed == 0 and stats.unreachable == 0
        for stats in recap.values()
    )
