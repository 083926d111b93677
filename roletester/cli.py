"""
roletester CLI - Ansible role testing against containers

A command-line tool for testing an Ansible role by:
1. Checking the playbook syntax inside a test container
2. Running the role against the container
3. Running it again to verify idempotence
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from roletester import __version__
from roletester.ansible import RoleTester
from roletester.config import Settings, load_settings
from roletester.container import ContainerManager
from roletester.errors import ContainerError, RoleTesterError
from roletester.logs import LoggingManager, configure_logging
from roletester.reporting import print_report, print_runs
from roletester.runs import RunManager
from roletester.schemas import AnsibleConfig, TargetConfig

app = typer.Typer(
    name="roletester",
    help="Ansible role testing against containers",
    add_completion=False,
)

console = Console()
logger = logging.getLogger(__name__)


def _ansible_config(
    settings: Settings,
    playbook: Optional[str],
    remote_path: Optional[str],
    verbose: bool,
    quiet: bool,
    executable: Optional[str],
) -> AnsibleConfig:
    """Apply command-line overrides to the configured defaults."""
    overrides = {}
    if playbook:
        overrides["playbook_file"] = playbook
    if remote_path is not None:
        overrides["remote_path"] = remote_path
    if verbose:
        overrides["verbose"] = True
    if quiet:
        overrides["quiet"] = True
    if executable:
        overrides["executable"] = executable
    return settings.ansible.model_copy(update=overrides)


def _existing_target(container: str) -> TargetConfig:
    if not container:
        console.print("[red]❌ Error: --container is required[/red]")
        raise typer.Exit(1)
    return TargetConfig(container_id=container)


@app.command()
def run(
    playbook: Optional[str] = typer.Option(None, "--playbook", "-p", help="Playbook to test (default: playbook.yml)"),
    image: Optional[str] = typer.Option(None, "--image", "-i", help="Image to start the test container from"),
    container: Optional[str] = typer.Option(
        None,
        "--container",
        "-c",
        help="Use an already running container instead of starting one",
    ),
    role_path: Optional[str] = typer.Option(None, "--role-path", help="Local role directory mounted into the container"),
    remote_path: Optional[str] = typer.Option(
        None,
        "--remote-path",
        help="Directory relative playbook paths resolve against (default: the role directory)",
    ),
    mount_path: Optional[str] = typer.Option(None, "--mount-path", help="Mount point of the role inside the container"),
    repo: Optional[str] = typer.Option(None, "--repo", "-r", help="Git repository URL of the role"),
    branch: Optional[str] = typer.Option(None, "--branch", "-b", help="Git branch to clone"),
    commit: Optional[str] = typer.Option(None, "--commit", help="Git commit to check out"),
    name: Optional[str] = typer.Option(None, "--name", help="Name of the test container"),
    command: Optional[str] = typer.Option(None, "--command", help="Command to run in the test container"),
    privileged: bool = typer.Option(True, "--privileged/--no-privileged", help="Start the container privileged"),
    skip_syntax: bool = typer.Option(False, "--skip-syntax", help="Skip the syntax check"),
    skip_idempotence: bool = typer.Option(False, "--skip-idempotence", help="Skip the idempotence test"),
    keep: bool = typer.Option(False, "--keep", help="Keep the test container after the run"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output directory (default: ./data)"),
    executable: Optional[str] = typer.Option(None, "--ansible-playbook", help="Path to ansible-playbook"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Run ansible-playbook with -vvvv"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only report results"),
):
    """
    Run a complete role test: syntax check, role run, idempotence test.

    Example (local role, fresh container):
        roletester run \\
            --image geerlingguy/docker-ubuntu2204-ansible \\
            --role-path . \\
            --playbook tests/test.yml

    Example (role from git, existing container):
        roletester run \\
            --repo https://github.com/geerlingguy/ansible-role-apache \\
            --container 3f2a9c1b0d4e \\
            --playbook tests/test.yml
    """
    settings = load_settings()
    configure_logging(verbose=verbose, quiet=quiet)

    if not container and not (image or settings.target.image):
        console.print("[red]❌ Error: Must specify either --image or --container[/red]")
        raise typer.Exit(1)

    if role_path and repo:
        console.print("[red]❌ Error: Cannot specify both --role-path and --repo[/red]")
        raise typer.Exit(1)

    config = _ansible_config(settings, playbook, remote_path, verbose, quiet, executable)

    target_overrides = {"privileged": privileged}
    for key, value in (("image", image), ("name", name), ("command", command), ("remote_path", mount_path)):
        if value:
            target_overrides[key] = value
    target = TargetConfig.model_validate({**settings.target.model_dump(), **target_overrides})

    output_dir = Path(output).resolve() if output else settings.data_dir.resolve()

    if not quiet:
        console.print(Panel.fit(
            "[bold cyan]roletester[/bold cyan]\n\n"
            f"Playbook: [yellow]{config.playbook_file}[/yellow]\n"
            f"Role: [yellow]{repo or role_path or '-'}[/yellow]\n"
            f"Target: [yellow]{container or target.image}[/yellow]\n"
            f"Output: [yellow]{output_dir}[/yellow]",
            border_style="cyan"
        ))

    try:
        passed = _run_role_test(
            config=config,
            target=target,
            output_dir=output_dir,
            container=container,
            role_path=role_path,
            repo=repo,
            branch=branch,
            commit=commit,
            skip_syntax=skip_syntax,
            skip_idempotence=skip_idempotence,
            keep=keep,
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️  Role test interrupted by user[/yellow]")
        raise typer.Exit(1)
    except RoleTesterError as e:
        console.print(f"\n[red]❌ Error: {e}[/red]")
        raise typer.Exit(1)

    if not passed:
        raise typer.Exit(1)


def _run_role_test(
    config: AnsibleConfig,
    target: TargetConfig,
    output_dir: Path,
    container: Optional[str],
    role_path: Optional[str],
    repo: Optional[str],
    branch: Optional[str],
    commit: Optional[str],
    skip_syntax: bool,
    skip_idempotence: bool,
    keep: bool,
) -> bool:
    """Set up the run and target, run all checks and record the report."""
    run_manager = RunManager(base_data_dir=output_dir)
    context = run_manager.create_run(config.playbook_file, image=target.image)

    if repo:
        role_path = str(run_manager.clone_role(context, repo, branch=branch, commit=commit))
        console.print(f"✅ Role cloned to: {role_path} ({context.commit})")

    if role_path:
        target.role_path = role_path
        if not config.remote_path:
            config.remote_path = str(Path(role_path).resolve())

    container_manager = ContainerManager()
    started = False
    try:
        if container:
            target.container_id = container
        else:
            container_manager.start(target)
            started = True

        context.mark_started(target.container_id)

        logging_manager = LoggingManager(context.run_dir)
        tester = RoleTester(config, target, logging_manager=logging_manager)
        report = tester.run_all(skip_syntax=skip_syntax, skip_idempotence=skip_idempotence)

        context.mark_completed(report)
        logging_manager.create_summary({
            "steps_run": len(report.steps),
            "steps_passed": sum(1 for s in report.steps if s.passed),
            "duration_seconds": report.duration_seconds,
        })
    except BaseException:
        context.mark_errored()
        raise
    finally:
        if started and not keep:
            try:
                container_manager.remove(target)
            except ContainerError as e:
                logger.warning(f"Could not remove container {target.container_id}: {e}")

    console.print("\n")
    print_report(report, out=console)
    console.print(f"\n[bold]📁 Results saved to:[/bold] [cyan]{context.run_dir}[/cyan]")

    return report.passed


@app.command()
def syntax(
    container: str = typer.Option(..., "--container", "-c", help="ID of the running test container"),
    playbook: Optional[str] = typer.Option(None, "--playbook", "-p", help="Playbook to check"),
    remote_path: Optional[str] = typer.Option(None, "--remote-path", help="Directory relative playbook paths resolve against"),
    executable: Optional[str] = typer.Option(None, "--ansible-playbook", help="Path to ansible-playbook"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Run ansible-playbook with -vvvv"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only report the result"),
):
    """Check the playbook syntax against a running container."""
    settings = load_settings()
    configure_logging(verbose=verbose, quiet=quiet)

    config = _ansible_config(settings, playbook, remote_path, verbose, quiet, executable)
    tester = RoleTester(config, _existing_target(container))

    try:
        passed = tester.syntax_check()
    except RoleTesterError as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        raise typer.Exit(1)

    if not passed:
        raise typer.Exit(1)


@app.command()
def idempotence(
    container: str = typer.Option(..., "--container", "-c", help="ID of the running test container"),
    playbook: Optional[str] = typer.Option(None, "--playbook", "-p", help="Playbook to run"),
    remote_path: Optional[str] = typer.Option(None, "--remote-path", help="Directory relative playbook paths resolve against"),
    executable: Optional[str] = typer.Option(None, "--ansible-playbook", help="Path to ansible-playbook"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Run ansible-playbook with -vvvv"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only report the result"),
):
    """
    Run the playbook against a container and verify nothing changed.

    Meant for a container the role has already been applied to.
    """
    settings = load_settings()
    configure_logging(verbose=verbose, quiet=quiet)

    config = _ansible_config(settings, playbook, remote_path, verbose, quiet, executable)
    tester = RoleTester(config, _existing_target(container))

    try:
        passed, _ = tester.idempotence_test()
    except RoleTesterError as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        raise typer.Exit(1)

    if not passed:
        raise typer.Exit(1)


@app.command()
def hosts(
    playbook: Optional[str] = typer.Option(None, "--playbook", "-p", help="Playbook to inspect"),
    remote_path: Optional[str] = typer.Option(None, "--remote-path", help="Directory relative playbook paths resolve against"),
    executable: Optional[str] = typer.Option(None, "--ansible-playbook", help="Path to ansible-playbook"),
):
    """List the host patterns a playbook targets."""
    settings = load_settings()
    configure_logging()

    config = _ansible_config(settings, playbook, remote_path, False, True, executable)
    tester = RoleTester(config, TargetConfig())

    try:
        found = tester.list_hosts()
    except RoleTesterError as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        raise typer.Exit(1)

    for host in found:
        console.print(host)


@app.command()
def runs(
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output directory (default: ./data)"),
):
    """List recorded role test runs."""
    settings = load_settings()
    output_dir = Path(output).resolve() if output else settings.data_dir.resolve()

    run_manager = RunManager(base_data_dir=output_dir)
    contexts = [run_manager.load_run_context(run_id).to_dict() for run_id in run_manager.list_runs()]
    print_runs(contexts, out=console)


@app.command()
def version():
    """Show the version of roletester."""
    console.print(f"[bold cyan]roletester[/bold cyan] v{__version__}")
    console.print("Ansible role testing against containers")


if __name__ == "__main__":
    app()
