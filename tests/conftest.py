"""Pytest configuration and sample ansible-playbook output for roletester."""

import os

import pytest

from roletester.ansible import runner

LIST_HOSTS_OUTPUT = """
playbook: tests/test.yml

  play #1 (all): all\tTAGS: []
    pattern: [u'all']
    hosts (1):
      localhost
"""

LIST_HOSTS_MULTI_OUTPUT = """
playbook: site.yml

  play #1 (web): web\tTAGS: []
    pattern: ['web', 'db']
    hosts (0):
"""

FIRST_RUN_OUTPUT = """
PLAY [all] *********************************************************************

TASK [Gathering Facts] *********************************************************
ok: [3f2a9c1b0d4e]

TASK [role_under_test : Install apache] ****************************************
changed: [3f2a9c1b0d4e]

PLAY RECAP *********************************************************************
3f2a9c1b0d4e               : ok=2    changed=1    unreachable=0    failed=0    skipped=0    rescued=0    ignored=0
"""

IDEMPOTENT_OUTPUT = """
PLAY [all] *********************************************************************

TASK [Gathering Facts] *********************************************************
ok: [3f2a9c1b0d4e]

TASK [role_under_test : Install apache] ****************************************
ok: [3f2a9c1b0d4e]

PLAY RECAP *********************************************************************
3f2a9c1b0d4e               : ok=2    changed=0    unreachable=0    failed=0    skipped=0    rescued=0    ignored=0   

Playbook run took 0 days, 0 hours, 0 minutes, 4 seconds
"""

FAILED_OUTPUT = """
PLAY [all] *********************************************************************

TASK [role_under_test : Install apache] ****************************************
fatal: [3f2a9c1b0d4e]: FAILED! => {"changed": false, "msg": "No package matching 'apache3'"}

PLAY RECAP *********************************************************************
3f2a9c1b0d4e               : ok=1    changed=0    unreachable=0    failed=1    skipped=0    rescued=0    ignored=0
"""


@pytest.fixture(autouse=True)
def reset_runner_cache():
    runner.reset_ansible_playbook_cache()
    yield
    runner.reset_ansible_playbook_cache()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep ROLETESTER_* variables and stray .env files out of tests."""
    for key in list(os.environ):
        if key.startswith("ROLETESTER_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    yield
    # load_dotenv writes straight into os.environ
    for key in list(os.environ):
        if key.startswith("ROLETESTER_"):
            del os.environ[key]


@pytest.fixture
def stub_executable(tmp_path):
    """Factory writing an executable shell script that stands in for a CLI."""
    def _write(name: str, script: str):
        path = tmp_path / "bin" / name
        path.parent.mkdir(exist_ok=True)
        path.write_text("#!/bin/sh\n" + script)
        path.chmod(0o755)
        return path
    return _write
