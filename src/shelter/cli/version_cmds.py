# src/shelter/cli/version_cmds.py

import click

from shelter.versions import __version__, supported_versions


@click.command(name="version-check")
@click.argument("versions", nargs=-1, required=True)
@click.pass_context
def version_check_cli(ctx: click.Context, versions: tuple[str, ...]):
    """Exit 0 when the running shelter matches one of VERSIONS (e.g. 0 or 0.1 or 0.1.2)."""
    if supported_versions(*versions):
        ctx.exit(0)
    click.echo(f"shelter {__version__} is not one of: {' '.join(versions)}", err=True)
    ctx.exit(1)


# 🔼⚙️
