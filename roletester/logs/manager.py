"""
Logging Manager for roletester runs.

Handles the per-run log directory and the files written to it.
"""

import json
from pathlib import Path
from datetime import datetime

STEP_NAMES = ("hosts", "syntax_check", "role", "idempotence")


class LoggingManager:
    """Manages the log directory and step output files for a run."""

    def __init__(self, run_dir: Path):
        """
        Initialize the logging manager.

        Args:
            run_dir: Root directory for the run (contains role/, logs/, metadata.json)
        """
        self.run_dir = Path(run_dir)
        self.logs_dir = self.run_dir / "logs"
        self.logs_dir.mkdir(parents=True, exist_ok=True)

    def get_step_log_path(self, step: str) -> Path:
        """
        Get the log file path for a step.

        Args:
            step: Step name (hosts, syntax_check, role, idempotence)

        Returns:
            Path to the step's log file
        """
        if step not in STEP_NAMES:
            raise ValueError(f"Unknown step: {step}")
        return self.logs_dir / f"{step}.log"

    def write_step_output(self, step: str, args: list, output: str) -> Path:
        """Write the command line and captured output of a step."""
        log_path = self.get_step_log_path(step)
        with open(log_path, 'w') as f:
            f.write(f"# {datetime.now().isoformat()}\n")
            f.write(f"# ansible-playbook {' '.join(args)}\n")
            f.write(output)
        return log_path

    def get_summary_path(self) -> Path:
        return self.logs_dir / "summary.json"

    def create_summary(self, stats: dict) -> None:
        """
        Create a summary file for the run's logs.

        Args:
            stats: Dictionary with statistics (steps_run, steps_passed, etc.)
        """
        summary = {
            "timestamp": datetime.now().isoformat(),
            "run_dir": str(self.run_dir),
            "stats": stats
        }

        with open(self.get_summary_path(), 'w') as f:
            json.dump(summary, f, indent=2)
