"""`progress89` command line entry point.

Subcommand groups live in sibling modules and are imported on first use, so
that `progress89 --help` does not pay for importing the web stack.
"""

from __future__ import annotations

import importlib
import sys
import threading
import traceback
import types
import typing as t
from pathlib import Path

import pydantic as p

import progress89
import progress89.lib.cli as click
from progress89.core import di, Progress89Container
from progress89.model import DeploymentEnvironment

_configured = False
_Progress89Root = Path(progress89.__file__).resolve().parents[1]

_wiring: list[types.ModuleType] = []

Commands: t.Final[dict[str, str]] = {
    "schema": "Database migrations",
    "user": "Manage user accounts",
    "web": "Run the gradebook API",
}


class Progress89MultiCommand(click.Group):
    def list_commands(self, ctx: click.Context) -> list[str]:
        return sorted(Commands)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        if cmd_name not in Commands:
            return None
        mod = importlib.import_module(f"progress89.cli.{cmd_name}")
        if mod not in _wiring:
            _wiring.append(mod)
        command: click.Command = getattr(mod, cmd_name)
        command.help = command.help or Commands[cmd_name]
        return command


@click.group(cls=Progress89MultiCommand)
@click.option("-E", "--env", default=DeploymentEnvironment.Local, type=click.EnumType(DeploymentEnvironment))
@click.option("-c", "--config-root", default=_Progress89Root / "config", type=click.URIParamType(dir_ok=True))
@click.option("-s", "--secrets-path", default=None, type=click.URIParamType(dir_ok=True))
@click.option(
    "-o",
    "--override",
    multiple=True,
    help="configuration path parameter-value pairs to override config with, e.g., -o web.gradebook.backend.port=9000",
)
@click.option("-D", "--debug", is_flag=True, default=False)
@click.pass_obj
@di.inject
def main(
    ct: Progress89Container,
    env: DeploymentEnvironment,
    config_root: p.FileUrl,
    secrets_path: p.AnyUrl | None,
    override: tuple[str, ...],
    debug: bool,
):
    """89 Progress gradebook administration."""
    global _configured
    Progress89Container.boot(
        ct,
        debug=debug,
        env=env,
        config_root=config_root,
        secrets_path=secrets_path,
        override=override,
        wiring=tuple(_wiring),
    )
    _configured = True


def _debugging(container: Progress89Container, argv: t.Sequence[str]) -> bool:
    # the container only knows once main() has run
    if _configured:
        return bool(container.debug())
    return "-D" in argv or "--debug" in argv


def _fail(ex: Exception, debug: bool) -> t.NoReturn:
    click.echo(click.style("ERROR ", fg="red"), nl=False, file=sys.stderr)
    click.echo(str(ex), file=sys.stderr)
    if debug:
        traceback.print_exc()
    sys.exit(ex.exit_code if isinstance(ex, click.ClickException) else -1)


def execute_command(*_args: str) -> None:
    threading.current_thread().name = "progress89-0"
    args = list(_args or sys.argv)

    # Strip away full path to fix program name in help message
    args[0] = Path(args[0]).name
    container = Progress89Container()

    try:
        with main.make_context(args[0], args=args[1:]) as ctx:
            ctx.obj = container
            sys.exit(t.cast(int, main.invoke(ctx)))
    except (EOFError, KeyboardInterrupt, click.Abort):
        click.echo("Aborted!", file=sys.stderr)
        sys.exit(1)
    except click.exceptions.Exit as ex:
        sys.exit(ex.exit_code)
    except Exception as ex:
        _fail(ex, _debugging(container, args[1:]))
    finally:
        container.shutdown_resources()


if __name__ == "__main__":
    execute_command(*sys.argv)
