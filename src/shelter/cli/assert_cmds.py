# src/shelter/cli/assert_cmds.py

"""
Assertion helpers exposed as commands, for shell test cases:

    shelter assert success 'systemctl -q is-active sshd' 'SSH daemon is not running!'
"""

import click

from shelter import assertions


@click.group(name="assert")
def assert_cli():
    """Assertion helpers for use inside test commands."""
    pass


@assert_cli.command(name="success")
@click.argument("cmd")
@click.argument("msg", required=False)
@click.pass_context
def assert_success_cli(ctx: click.Context, cmd: str, msg: str | None):
    """Assert CMD exits with status 0."""
    ctx.exit(assertions.assert_success(cmd, msg))


@assert_cli.command(name="fail")
@click.argument("cmd")
@click.argument("msg", required=False)
@click.option("--exit-code", type=int, default=None, help="Exact non-zero exit status expected.")
@click.pass_context
def assert_fail_cli(ctx: click.Context, cmd: str, msg: str | None, exit_code: int | None):
    """Assert CMD exits with a non-zero status."""
    ctx.exit(assertions.assert_fail(cmd, exit_code, msg))


@assert_cli.command(name="stdout")
@click.argument("cmd")
@click.argument("expected_file", default="-")
@click.argument("msg", required=False)
@click.pass_context
def assert_stdout_cli(ctx: click.Context, cmd: str, expected_file: str, msg: str | None):
    """Assert the stdout of CMD matches EXPECTED_FILE (default: stdin)."""
    ctx.exit(assertions.assert_stdout(cmd, expected_file, msg))


@assert_cli.command(name="stdout-contains")
@click.argument("cmd")
@click.argument("regex")
@click.argument("msg", required=False)
@click.pass_context
def assert_stdout_contains_cli(ctx: click.Context, cmd: str, regex: str, msg: str | None):
    """Assert a stdout line of CMD matches REGEX."""
    ctx.exit(assertions.assert_stdout_contains(cmd, regex, msg))


@assert_cli.command(name="stdout-not-contains")
@click.argument("cmd")
@click.argument("regex")
@click.argument("msg", required=False)
@click.pass_context
def assert_stdout_not_contains_cli(ctx: click.Context, cmd: str, regex: str, msg: str | None):
    """Assert no stdout line of CMD matches REGEX."""
    ctx.exit(assertions.assert_stdout_not_contains(cmd, regex, msg))


# 🔼⚙️
