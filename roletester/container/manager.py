"""Docker container lifecycle for role test targets."""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from roletester.errors import ContainerError
from roletester.schemas import TargetConfig

logger = logging.getLogger(__name__)


class ContainerManager:
    """Starts and removes the containers playbooks are run against."""

    def __init__(self, docker: str = "docker"):
        self.docker = docker
        self._docker_path: Optional[str] = None

    def _binary(self) -> str:
        if self._docker_path is None:
            found = shutil.which(self.docker)
            if found is None:
                logger.error(f"executable '{self.docker}' was not found in $PATH.")
                raise ContainerError(f"executable '{self.docker}' was not found in $PATH")
            self._docker_path = found
        return self._docker_path

    def _docker(self, args: List[str]) -> str:
        cmd = [self._binary()] + args
        logger.debug(f"Running: {' '.join(cmd)}")
        result = subprocess.run(
            cmd, capture_output=True, text=True, encoding="utf-8", errors="replace"
        )
        if result.returncode != 0:
            raise ContainerError(
                f"docker {args[0]} failed with status {result.returncode}: {result.stderr.strip()}"
            )
        return result.stdout

    def run_args(self, target: TargetConfig) -> List[str]:
        """Arguments for `docker run` starting the target."""
        if not target.image:
            raise ContainerError("An image is required to start a test container")

        args = ["run", "--detach"]
        if target.privileged:
            args.append("--privileged")
        if target.name:
            args.extend(["--name", target.name])
        if target.role_path:
            role_path = Path(target.role_path).resolve()
            args.extend(["--volume", f"{role_path}:{target.remote_path}:ro"])
        args.append(target.image)
        args.extend(target.command)
        return args

    def start(self, target: TargetConfig) -> str:
        """
        Start a container for the target.

        Args:
            target: Target configuration; container_id is set on success

        Returns:
            Short container ID

        Raises:
            ContainerError: If docker is missing or the container fails to start
        """
        logger.info(f"Starting test container from {target.image}...")
        output = self._docker(self.run_args(target))

        container_id = output.strip()[:12]
        if not container_id:
            raise ContainerError("docker run did not report a container ID")

        target.container_id = container_id
        logger.info(f"Container {container_id} started")
        return container_id

    def is_running(self, target: TargetConfig) -> bool:
        """Check whether the target's container is running."""
        if not target.container_id:
            return False
        try:
            output = self._docker(["inspect", "-f", "{{.State.Running}}", target.container_id])
        except ContainerError:
            return False
        return output.strip() == "true"

    def remove(self, target: TargetConfig) -> None:
        """Force-remove the target's container."""
        if not target.container_id:
            return
        logger.info(f"Removing container {target.container_id}...")
        self._docker(["rm", "--force", target.container_id])
        target.container_id = None
