"""
Centralized Pydantic schemas for roletester.

Configuration for the ansible-playbook invocations, the container test target,
and the report produced by a role test run all live here.
"""

from datetime import datetime
from typing import List, Dict, Optional

from pydantic import BaseModel, Field, field_validator


# ============================================================================
# CONFIGURATION SCHEMAS
# ============================================================================

class AnsibleConfig(BaseModel):
    """Settings for invoking ansible-playbook against a test target."""
    playbook_file: str = Field(default="playbook.yml", description="Playbook to run, e.g., 'tests/test.yml'")
    remote_path: str = Field(
        default="",
        description="Directory holding the role under test; relative playbook paths resolve against it",
    )
    verbose: bool = Field(default=False, description="Pass -vvvv to ansible-playbook")
    quiet: bool = Field(default=False, description="Suppress progress messages and live playbook output")
    executable: Optional[str] = Field(None, description="Explicit path to the ansible-playbook binary")


class TargetConfig(BaseModel):
    """A container the role is tested against."""
    image: Optional[str] = Field(None, description="Image to start the target from, e.g., 'geerlingguy/docker-ubuntu2204-ansible'")
    name: Optional[str] = Field(None, description="Container name")
    command: List[str] = Field(default_factory=list, description="Command to run in the container (image default if empty)")
    privileged: bool = Field(default=True, description="Start the container privileged (systemd images need it)")
    role_path: Optional[str] = Field(None, description="Host directory mounted into the container")
    remote_path: str = Field(default="/etc/ansible/roles/role_under_test", description="Mount point of role_path")
    container_id: Optional[str] = Field(None, description="ID of the running container")

    @field_validator('command', mode='before')
    @classmethod
    def split_command_string(cls, v):
        """Accept a plain command string as well as a list."""
        if isinstance(v, str):
            return v.split()
        return v


# ============================================================================
# REPORT SCHEMAS
# ============================================================================

class RecapStats(BaseModel):
    """Per-host counters from the PLAY RECAP block."""
    ok: int = 0
    changed: int = 0
    unreachable: int = 0
    failed: int = 0
    skipped: int = 0
    rescued: int = 0
    ignored: int = 0


class StepResult(BaseModel):
    """Outcome of one step of a role test."""
    name: str = Field(description="Step name: hosts, syntax_check, role, idempotence")
    passed: bool
    duration_seconds: float = 0.0
    error: Optional[str] = None


class AnsibleReport(BaseModel):
    """Report of a role test run against one target."""
    playbook: str
    container_id: Optional[str] = None
    hosts: List[str] = Field(default_factory=list)
    steps: List[StepResult] = Field(default_factory=list)
    recap: Dict[str, RecapStats] = Field(default_factory=dict, description="PLAY RECAP of the idempotence run")
    started_at: str = Field(default_factory=lambda: datetime.now().isoformat())
    completed_at: Optional[str] = None

    @property
    def passed(self) -> bool:
        return bool(self.steps) and all(step.passed for step in self.steps)

    @property
    def duration_seconds(self) -> float:
        return sum(step.duration_seconds for step in self.steps)

    def record(self, name: str, passed: bool, duration_seconds: float = 0.0, error: Optional[str] = None) -> StepResult:
        """Record a step, replacing an earlier result of the same name."""
        step = StepResult(name=name, passed=passed, duration_seconds=duration_seconds, error=error)
        self.steps = [s for s in self.steps if s.name != name]
        self.steps.append(step)
        return step

    def get_step(self, name: str) -> Optional[StepResult]:
        return next((s for s in self.steps if s.name == name), None)

    def complete(self) -> None:
        self.completed_at = datetime.now().isoformat()
