"""Settings loading from .env files and ROLETESTER_* environment variables."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv, find_dotenv
from pydantic import BaseModel, Field

from roletester.schemas import AnsibleConfig, TargetConfig

_TRUE_VALUES = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Defaults for the CLI, before command-line overrides."""
    ansible: AnsibleConfig = Field(default_factory=AnsibleConfig)
    target: TargetConfig = Field(default_factory=TargetConfig)
    data_dir: Path = Field(default_factory=lambda: Path("./data"))


def _env_flag(name: str) -> Optional[bool]:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return None
    return value.strip().lower() in _TRUE_VALUES


def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    """Load settings from a .env file and the process environment.

    Variables already set in the environment win over the .env file.

    Args:
        dotenv_path: Explicit .env file (default: nearest .env found upwards from cwd)

    Returns:
        Settings populated from ROLETESTER_* variables
    """
    load_dotenv(dotenv_path or find_dotenv(usecwd=True))

    ansible_values = {}
    if os.environ.get("ROLETESTER_PLAYBOOK"):
        ansible_values["playbook_file"] = os.environ["ROLETESTER_PLAYBOOK"]
    if os.environ.get("ROLETESTER_REMOTE_PATH"):
        ansible_values["remote_path"] = os.environ["ROLETESTER_REMOTE_PATH"]
    if os.environ.get("ROLETESTER_ANSIBLE_PLAYBOOK"):
        ansible_values["executable"] = os.environ["ROLETESTER_ANSIBLE_PLAYBOOK"]
    for key, name in (("verbose", "ROLETESTER_VERBOSE"), ("quiet", "ROLETESTER_QUIET")):
        flag = _env_flag(name)
        if flag is not None:
            ansible_values[key] = flag

    target_values = {}
    if os.environ.get("ROLETESTER_IMAGE"):
        target_values["image"] = os.environ["ROLETESTER_IMAGE"]

    settings = Settings(
        ansible=AnsibleConfig(**ansible_values),
        target=TargetConfig(**target_values),
    )
    if os.environ.get("ROLETESTER_DATA_DIR"):
        settings.data_dir = Path(os.environ["ROLETESTER_DATA_DIR"])
    return settings
