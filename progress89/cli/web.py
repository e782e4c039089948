import os
import typing as t

import uvicorn

import progress89.lib.cli as click
from progress89.core import BootConfiguration, di
from progress89.core.config import LoggingSettings, WebSettings
from progress89.web.gradebook.main import BootVariable


class ServeConfig(t.TypedDict):
    host: str
    port: int


def _get_app_config(app_name: str, web_cf: WebSettings) -> tuple[str, ServeConfig]:
    """App `name` is configured at web.<name> and served from progress89.web.<name>:create_app"""
    cf = getattr(web_cf, app_name, None)
    if cf is None:
        raise click.ClickException(f"unknown app '{app_name}' - not configured in web.yaml")

    app_path = f"progress89.web.{app_name}:create_app"
    uvi_cf: ServeConfig = {"host": str(cf.backend.host), "port": cf.backend.port}
    return app_path, uvi_cf


@click.group()
def web(): ...


@web.command(name="serve")
@click.argument("app_name", default="gradebook")
@click.option("-w", "--workers", type=click.IntRange(min=1), default=1)
@click.option("--reload", is_flag=True, default=False, help="restart on source changes")
@di.inject
def serve(
    app_name: str,
    workers: int,
    reload: bool,
    boot_cf: BootConfiguration = di.Provide["_boot_config"],
    logging_cf: LoggingSettings = di.Provide["config.logging", di.as_(LoggingSettings)],  # noqa: B008
    web_cf: WebSettings = di.Provide["config.web", di.as_(WebSettings)],  # noqa: B008
):
    """Start a web app backend."""
    app_path, uvi_cf = _get_app_config(app_name, web_cf)

    os.environ[BootVariable] = boot_cf.model_dump_json()
    uvicorn.run(
        app_path, factory=True, reload=reload, workers=workers, log_config=logging_cf.model_dump(), **uvi_cf
    )
