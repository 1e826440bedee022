# type: ignore
from invoke import task


@task
def venv(ctx):
    """Initialize development environment with uv."""
    ctx.run("uv sync --extra test --extra dev")


@task
def lint(ctx):
    """
    Perform static analysis on the source code to check for syntax errors and enforce style consistency.
    """
    ctx.run("ruff check src tests", pty=True)
    ctx.run("ruff format --check src tests", pty=True)
    ctx.run("mypy src", pty=True)


@task
def test(ctx):
    """
    Run tests with coverage information.
    """
    ctx.run("pytest --cov=src --cov-report=term-missing", pty=True)


@task
def build_package(ctx):
    """
    Build package using uv.
    """

    ctx.run("rm -rf dist")
    ctx.run("uv build")


@task
def run(ctx, interface="", broker=""):
    """Run the daemon with capture privileges (needs root for promiscuous mode)."""
    args = []
    if interface:
        args.append(f"--interface {interface}")
    if broker:
        args.append(f"--broker {broker}")
    ctx.run(f"sudo -E buttonoff run {' '.join(args)}", pty=True)
