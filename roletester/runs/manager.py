"""Run management for cloning roles and recording role test runs."""

import shutil
from pathlib import Path
from typing import Optional, List, Dict, Any
from datetime import datetime
import json

import git

from roletester.errors import RoleTesterError
from roletester.schemas import AnsibleReport


class RunContext:
    """Context for a single role test run."""

    def __init__(
        self,
        run_id: str,
        base_data_dir: Path,
        playbook_file: str,
        image: Optional[str] = None,
        repo_url: Optional[str] = None,
        branch: Optional[str] = None,
        commit: Optional[str] = None,
    ):
        self.run_id = run_id
        self.base_data_dir = base_data_dir
        self.playbook_file = playbook_file
        self.image = image
        self.repo_url = repo_url
        self.branch = branch
        self.commit = commit

        # Directory structure
        self.run_dir = base_data_dir / run_id
        self.role_dir = self.run_dir / "role"
        self.logs_dir = self.run_dir / "logs"

        # Metadata
        self.created_at = datetime.now().isoformat()
        self.completed_at: Optional[str] = None
        self.status = "initializing"
        self.container_id: Optional[str] = None
        self.report: Optional[AnsibleReport] = None

    @classmethod
    def create(
        cls,
        base_data_dir: Path,
        playbook_file: str,
        image: Optional[str] = None,
    ) -> "RunContext":
        """Create a new run context with unique run ID."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        playbook_name = Path(playbook_file).stem or "playbook"
        run_id = f"run_{playbook_name}_{timestamp}"

        return cls(run_id, base_data_dir, playbook_file, image=image)

    def create_directories(self) -> None:
        """Create necessary directories for the run."""
        self.run_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(exist_ok=True)

        self.save_metadata()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "playbook_file": self.playbook_file,
            "image": self.image,
            "repo_url": self.repo_url,
            "branch": self.branch,
            "commit": self.commit,
            "container_id": self.container_id,
            "created_at": self.created_at,
            "completed_at": self.completed_at,
            "status": self.status,
            "report": self.report.model_dump() if self.report else None,
        }

    def save_metadata(self) -> None:
        """Save run context metadata to JSON file."""
        metadata_file = self.run_dir / "metadata.json"
        with open(metadata_file, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def mark_cloned(self) -> None:
        self.status = "cloned"
        self.save_metadata()

    def mark_started(self, container_id: Optional[str]) -> None:
        """Mark the run as running against a container."""
        self.status = "running"
        self.container_id = container_id
        self.save_metadata()

    def mark_completed(self, report: AnsibleReport) -> None:
        """Store the report and mark the run as passed or failed."""
        self.report = report
        self.status = "passed" if report.passed else "failed"
        self.completed_at = datetime.now().isoformat()
        self.save_metadata()

    def mark_errored(self) -> None:
        self.status = "error"
        self.completed_at = datetime.now().isoformat()
        self.save_metadata()

    @classmethod
    def load(cls, run_id: str, base_data_dir: Path) -> "RunContext":
        """Load existing run context by ID."""
        run_dir = base_data_dir / run_id
        metadata_file = run_dir / "metadata.json"

        if not metadata_file.exists():
            raise FileNotFoundError(f"Run context not found: {run_id}")

        with open(metadata_file) as f:
            metadata = json.load(f)

        context = cls(
            run_id=metadata["run_id"],
            base_data_dir=base_data_dir,
            playbook_file=metadata["playbook_file"],
            image=metadata.get("image"),
            repo_url=metadata.get("repo_url"),
            branch=metadata.get("branch"),
            commit=metadata.get("commit"),
        )
        context.created_at = metadata["created_at"]
        context.completed_at = metadata.get("completed_at")
        context.status = metadata["status"]
        context.container_id = metadata.get("container_id")
        if metadata.get("report"):
            context.report = AnsibleReport.model_validate(metadata["report"])

        return context


class RunManager:
    """Manages run directories and role checkouts."""

    def __init__(self, base_data_dir: Optional[Path] = None):
        """Initialize run manager with data directory."""
        self.base_data_dir = Path(base_data_dir) if base_data_dir else Path.cwd() / "data"
        self.base_data_dir.mkdir(parents=True, exist_ok=True)

    def create_run(
        self,
        playbook_file: str,
        image: Optional[str] = None,
        run_id: Optional[str] = None,
    ) -> RunContext:
        """Create the directory structure for a new run."""
        if run_id:
            context = RunContext(run_id, self.base_data_dir, playbook_file, image=image)
        else:
            context = RunContext.create(self.base_data_dir, playbook_file, image=image)
        context.create_directories()
        return context

    def clone_role(
        self,
        context: RunContext,
        repo_url: str,
        branch: Optional[str] = None,
        commit: Optional[str] = None,
    ) -> Path:
        """Clone the role under test into the run directory.

        Args:
            context: Run to clone into (role/ below its run directory)
            repo_url: Git repository URL of the role
            branch: Branch to clone (default: remote HEAD)
            commit: Optional commit to check out after cloning

        Returns:
            Path of the cloned role

        Raises:
            RoleTesterError: If cloning or checkout fails; the run directory is removed
        """
        if commit and not all(c in '0123456789abcdef' for c in commit.lower()):
            raise RoleTesterError(f"Invalid commit hash format: {commit}")

        clone_kwargs: Dict[str, Any] = {}
        if branch:
            clone_kwargs["branch"] = branch
        if not commit:
            # Only the tip is needed when no older commit is checked out
            clone_kwargs["depth"] = 1

        try:
            repo = git.Repo.clone_from(repo_url, context.role_dir, **clone_kwargs)
            if commit:
                repo.git.checkout(commit)
            resolved = repo.head.commit.hexsha[:7]
        except Exception as e:
            if context.run_dir.exists():
                shutil.rmtree(context.run_dir)
            raise RoleTesterError(f"Failed to clone role repository {repo_url}: {e}") from e

        context.repo_url = repo_url
        context.branch = branch
        context.commit = resolved
        context.mark_cloned()
        return context.role_dir

    def load_run_context(self, run_id: str) -> RunContext:
        """Load existing run context by ID."""
        return RunContext.load(run_id, self.base_data_dir)

    def cleanup_run(self, run_id: str) -> None:
        """Remove a run directory and all its contents."""
        run_dir = self.base_data_dir / run_id
        if run_dir.exists():
            shutil.rmtree(run_dir)

    def list_runs(self) -> List[str]:
        """List all available run IDs, oldest first."""
        runs = []
        for item in sorted(self.base_data_dir.iterdir()):
            if item.is_dir() and (item / "metadata.json").exists():
                runs.append(item.name)
        return runs
