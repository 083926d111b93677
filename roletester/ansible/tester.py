"""
Role testing operations against a running container.

RoleTester runs the individual checks of a role test (host discovery, syntax
check, role run, idempotence test) and records each outcome in an AnsibleReport.
"""

import logging
import time
from typing import List, Optional, Tuple

from roletester.ansible.commands import list_hosts_args, resolve_playbook, target_args
from roletester.ansible.parsing import idempotence_result, parse_hosts, parse_recap
from roletester.ansible.runner import ansible_playbook
from roletester.errors import PlaybookError
from roletester.logs import LoggingManager
from roletester.reporting import print_idempotence_result
from roletester.schemas import AnsibleConfig, AnsibleReport, TargetConfig

logger = logging.getLogger(__name__)

# Output is scraped; color codes would hide the recap
NO_COLOR_ENV = {"ANSIBLE_NOCOLOR": "1", "ANSIBLE_FORCE_COLOR": "0"}


class RoleTester:
    """Runs ansible-playbook checks against one test target."""

    def __init__(
        self,
        config: AnsibleConfig,
        target: TargetConfig,
        report: Optional[AnsibleReport] = None,
        logging_manager: Optional[LoggingManager] = None,
    ):
        """
        Initialize the tester.

        Args:
            config: ansible-playbook settings
            target: Test target; container_id must be set for everything but list_hosts
            report: Report to record results in (default: a new one)
            logging_manager: If given, step output is written to the run's logs/
        """
        self.config = config
        self.target = target
        self.logging_manager = logging_manager
        self.report = report or AnsibleReport(
            playbook=config.playbook_file,
            container_id=target.container_id,
        )

    @property
    def playbook(self) -> str:
        return resolve_playbook(self.config.playbook_file, self.config.remote_path)

    def _info(self, message: str) -> None:
        if not self.config.quiet:
            logger.info(message)

    def _run(self, step: str, args: List[str]) -> str:
        """Run ansible-playbook for a step, keeping its output in the run logs."""
        try:
            output = ansible_playbook(
                args,
                stdout=not self.config.quiet,
                executable=self.config.executable,
                env=NO_COLOR_ENV,
            )
        except PlaybookError as e:
            self._write_log(step, args, e.output)
            raise
        self._write_log(step, args, output)
        return output

    def _write_log(self, step: str, args: List[str], output: str) -> None:
        if self.logging_manager is not None:
            self.logging_manager.write_step_output(step, args, output or "")

    def _target_args(self, syntax_check: bool = False) -> List[str]:
        return target_args(
            self.playbook,
            self.target.container_id,
            verbose=self.config.verbose,
            syntax_check=syntax_check,
        )

    def list_hosts(self) -> List[str]:
        """
        Discover the hosts the playbook targets.

        Returns:
            Host patterns; ["localhost"] when none are listed

        Raises:
            PlaybookError: If ansible-playbook failed and printed no hosts
        """
        self._info("Checking role hosts...")

        args = list_hosts_args(self.playbook)
        started = time.monotonic()
        error = None
        try:
            output = self._run("hosts", args)
        except PlaybookError as e:
            error = e
            output = e.output

        hosts = parse_hosts(output or "")

        if not hosts and error is not None:
            logger.error(str(error))
            self.report.record("hosts", False, time.monotonic() - started, error=str(error))
            raise error

        if not hosts:
            logger.warning("host has been delegated to localhost")
            hosts = ["localhost"]

        self.report.hosts = hosts
        self.report.record("hosts", True, time.monotonic() - started)
        return hosts

    def syntax_check(self) -> bool:
        """
        Run a syntax check of the playbook inside the target.

        Returns:
            True if ansible-playbook accepted the playbook
        """
        self._info("Checking role syntax...")

        started = time.monotonic()
        try:
            self._run("syntax_check", self._target_args(syntax_check=True))
        except PlaybookError as e:
            if self.config.quiet:
                logger.error(str(e))
            else:
                logger.error("Syntax check: FAIL")
            self.report.record("syntax_check", False, time.monotonic() - started, error=str(e))
            return False

        self._info("Syntax check: PASS")
        self.report.record("syntax_check", True, time.monotonic() - started)
        return True

    def run_role(self) -> Tuple[bool, float]:
        """
        Run the playbook once against the target.

        Returns:
            (success, duration in seconds)
        """
        self._info("Running the role...")

        started = time.monotonic()
        try:
            self._run("role", self._target_args())
        except PlaybookError as e:
            logger.error(str(e))
            elapsed = time.monotonic() - started
            self.report.record("role", False, elapsed, error=str(e))
            return False, elapsed

        elapsed = time.monotonic() - started
        self._info(f"Role ran in {elapsed:.2f}s")
        self.report.record("role", True, elapsed)
        return True, elapsed

    def idempotence_test(self) -> Tuple[bool, float]:
        """
        Run the playbook again and check that nothing changed or failed.

        A failing run is still judged on its output, which will then report
        failed tasks or no recap at all.

        Returns:
            (idempotent, duration in seconds)
        """
        self._info("Testing role idempotence...")

        started = time.monotonic()
        error = None
        try:
            output = self._run("idempotence", self._target_args())
        except PlaybookError as e:
            error = str(e)
            output = e.output or ""

        idempotent = idempotence_result(output)
        elapsed = time.monotonic() - started

        self.report.recap = parse_recap(output)
        self.report.record("idempotence", idempotent, elapsed, error=error)

        if not self.config.quiet:
            print_idempotence_result(started, idempotent)

        return idempotent, elapsed

    def run_all(self, skip_syntax: bool = False, skip_idempotence: bool = False) -> AnsibleReport:
        """
        Run syntax check, role and idempotence test, stopping at the first failure.

        Args:
            skip_syntax: Do not run the syntax check
            skip_idempotence: Do not run the idempotence test

        Returns:
            The completed report
        """
        self.report.container_id = self.target.container_id

        try:
            if not skip_syntax and not self.syntax_check():
                return self.report

            passed, _ = self.run_role()
            if not passed:
                return self.report

            if not skip_idempotence:
                self.idempotence_test()

            return self.report
        finally:
            self.report.complete()
