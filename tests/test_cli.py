"""Tests for the roletester command line."""

import json
from unittest.mock import patch

from typer.testing import CliRunner

from roletester.cli import app
from roletester.errors import AnsibleNotFoundError, ContainerError
from roletester.schemas import AnsibleReport

runner = CliRunner()


def _report(passed: bool = True) -> AnsibleReport:
    report = AnsibleReport(playbook="tests/test.yml", container_id="abc")
    report.record("syntax_check", True, 0.5)
    report.record("role", True, 10.0)
    report.record("idempotence", passed, 8.0)
    report.complete()
    return report


def _start(target):
    target.container_id = "abc"
    return "abc"


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "roletester" in result.output


class TestRun:
    def test_requires_image_or_container(self) -> None:
        result = runner.invoke(app, ["run", "--playbook", "site.yml"])
        assert result.exit_code == 1
        assert "--image or --container" in result.output

    def test_role_path_and_repo_are_exclusive(self) -> None:
        result = runner.invoke(app, [
            "run", "--image", "centos:8", "--role-path", ".", "--repo", "https://example.com/role.git",
        ])
        assert result.exit_code == 1

    def test_passing_run(self, tmp_path) -> None:
        output_dir = tmp_path / "data"
        with patch("roletester.cli.ContainerManager") as manager_cls, \
                patch("roletester.cli.RoleTester") as tester_cls:
            manager = manager_cls.return_value
            manager.start.side_effect = _start
            tester_cls.return_value.run_all.return_value = _report()

            result = runner.invoke(app, [
                "run", "--image", "centos:8", "--playbook", "tests/test.yml",
                "--role-path", str(tmp_path), "--output", str(output_dir),
            ])

        assert result.exit_code == 0, result.output
        manager.start.assert_called_once()
        manager.remove.assert_called_once()

        config, target = tester_cls.call_args.args
        assert target.container_id == "abc"
        assert target.role_path == str(tmp_path)
        assert config.remote_path == str(tmp_path.resolve())

        run_dirs = [p for p in output_dir.iterdir() if p.is_dir()]
        assert len(run_dirs) == 1
        metadata = json.loads((run_dirs[0] / "metadata.json").read_text())
        assert metadata["status"] == "passed"
        assert metadata["container_id"] == "abc"

    def test_failing_run_exits_nonzero(self, tmp_path) -> None:
        with patch("roletester.cli.ContainerManager") as manager_cls, \
                patch("roletester.cli.RoleTester") as tester_cls:
            manager_cls.return_value.start.side_effect = _start
            tester_cls.return_value.run_all.return_value = _report(passed=False)

            result = runner.invoke(app, ["run", "--image", "centos:8", "--output", str(tmp_path)])

        assert result.exit_code == 1
        manager_cls.return_value.remove.assert_called_once()

    def test_existing_container_is_kept(self, tmp_path) -> None:
        with patch("roletester.cli.ContainerManager") as manager_cls, \
                patch("roletester.cli.RoleTester") as tester_cls:
            tester_cls.return_value.run_all.return_value = _report()

            result = runner.invoke(app, ["run", "--container", "abc", "--output", str(tmp_path)])

        assert result.exit_code == 0, result.output
        manager_cls.return_value.start.assert_not_called()
        manager_cls.return_value.remove.assert_not_called()

    def test_keep(self, tmp_path) -> None:
        with patch("roletester.cli.ContainerManager") as manager_cls, \
                patch("roletester.cli.RoleTester") as tester_cls:
            manager_cls.return_value.start.side_effect = _start
            tester_cls.return_value.run_all.return_value = _report()

            result = runner.invoke(app, ["run", "--image", "centos:8", "--keep", "--output", str(tmp_path)])

        assert result.exit_code == 0, result.output
        manager_cls.return_value.remove.assert_not_called()

    def test_container_start_failure(self, tmp_path) -> None:
        with patch("roletester.cli.ContainerManager") as manager_cls:
            manager_cls.return_value.start.side_effect = ContainerError("Unable to find image")
            result = runner.invoke(app, ["run", "--image", "nope", "--output", str(tmp_path)])

        assert result.exit_code == 1
        assert "Unable to find image" in result.output
        manager_cls.return_value.remove.assert_not_called()

        run_dir = next(p for p in tmp_path.iterdir() if p.is_dir())
        assert json.loads((run_dir / "metadata.json").read_text())["status"] == "error"

    def test_missing_ansible_removes_container(self, tmp_path) -> None:
        with patch("roletester.cli.ContainerManager") as manager_cls, \
                patch("roletester.cli.RoleTester") as tester_cls:
            manager_cls.return_value.start.side_effect = _start
            tester_cls.return_value.run_all.side_effect = AnsibleNotFoundError("not found in $PATH")

            result = runner.invoke(app, ["run", "--image", "centos:8", "--output", str(tmp_path)])

        assert result.exit_code == 1
        manager_cls.return_value.remove.assert_called_once()


class TestSingleOperations:
    def test_syntax_pass(self) -> None:
        with patch("roletester.cli.RoleTester") as tester_cls:
            tester_cls.return_value.syntax_check.return_value = True
            result = runner.invoke(app, ["syntax", "--container", "abc", "--playbook", "site.yml"])

        assert result.exit_code == 0
        config, target = tester_cls.call_args.args
        assert config.playbook_file == "site.yml"
        assert target.container_id == "abc"

    def test_syntax_fail(self) -> None:
        with patch("roletester.cli.RoleTester") as tester_cls:
            tester_cls.return_value.syntax_check.return_value = False
            result = runner.invoke(app, ["syntax", "--container", "abc"])
        assert result.exit_code == 1

    def test_idempotence(self) -> None:
        with patch("roletester.cli.RoleTester") as tester_cls:
            tester_cls.return_value.idempotence_test.return_value = (False, 3.0)
            result = runner.invoke(app, ["idempotence", "--container", "abc", "--verbose"])

        assert result.exit_code == 1
        config, _ = tester_cls.call_args.args
        assert config.verbose is True

    def test_hosts(self) -> None:
        with patch("roletester.cli.RoleTester") as tester_cls:
            tester_cls.return_value.list_hosts.return_value = ["web", "db"]
            result = runner.invoke(app, ["hosts", "--playbook", "site.yml"])

        assert result.exit_code == 0
        assert "web" in result.output
        assert "db" in result.output

    def test_hosts_missing_binary(self) -> None:
        with patch("roletester.cli.RoleTester") as tester_cls:
            tester_cls.return_value.list_hosts.side_effect = AnsibleNotFoundError("not found in $PATH")
            result = runner.invoke(app, ["hosts"])
        assert result.exit_code == 1


class TestRuns:
    def test_empty(self, tmp_path) -> None:
        result = runner.invoke(app, ["runs", "--output", str(tmp_path)])
        assert result.exit_code == 0
        assert "No runs recorded" in result.output

    def test_lists_runs(self, tmp_path) -> None:
        from roletester.runs import RunManager

        RunManager(tmp_path).create_run("site.yml", image="centos:8", run_id="run_site_1")
        result = runner.invoke(app, ["runs", "--output", str(tmp_path)])

        assert result.exit_code == 0
        assert "run_site_1" in result.output


class TestRunCleanup:
    def test_failed_container_removal_keeps_result(self, tmp_path) -> None:
        with patch("roletester.cli.ContainerManager") as manager_cls, \
                patch("roletester.cli.RoleTester") as tester_cls:
            manager_cls.return_value.start.side_effect = _start
            manager_cls.return_value.remove.side_effect = ContainerError("docker rm failed")
            tester_cls.return_value.run_all.return_value = _report()

            result = runner.invoke(app, ["run", "--image", "centos:8", "--output", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "Role test passed" in result.output

        run_dir = next(p for p in tmp_path.iterdir() if p.is_dir())
        assert json.loads((run_dir / "metadata.json").read_text())["status"] == "passed"

    def test_failed_removal_does_not_hide_the_run_error(self, tmp_path) -> None:
        with patch("roletester.cli.ContainerManager") as manager_cls, \
                patch("roletester.cli.RoleTester") as tester_cls:
            manager_cls.return_value.start.side_effect = _start
            manager_cls.return_value.remove.side_effect = ContainerError("docker rm failed")
            tester_cls.return_value.run_all.side_effect = AnsibleNotFoundError("not found in $PATH")

            result = runner.invoke(app, ["run", "--image", "centos:8", "--output", str(tmp_path)])

        assert result.exit_code == 1
        assert "not found in $PATH" in result.output

    def test_interrupted_run_is_marked_errored(self, tmp_path) -> None:
        with patch("roletester.cli.ContainerManager") as manager_cls, \
                patch("roletester.cli.RoleTester") as tester_cls:
            manager_cls.return_value.start.side_effect = _start
            tester_cls.return_value.run_all.side_effect = KeyboardInterrupt

            result = runner.invoke(app, ["run", "--image", "centos:8", "--output", str(tmp_path)])

        assert result.exit_code == 1
        assert "interrupted" in result.output
        manager_cls.return_value.remove.assert_called_once()

        run_dir = next(p for p in tmp_path.iterdir() if p.is_dir())
        assert json.loads((run_dir / "metadata.json").read_text())["status"] == "error"
