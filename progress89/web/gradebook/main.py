"""Main entry point for the gradebook web application."""

import os
import typing as t
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

import progress89
from progress89.core import BootConfiguration, di, Progress89Container
from progress89.core.config.web import GradebookWebSettings
from progress89.grading.errors import GradingError
from progress89.lib.json import FastAPIJSONResponse
from progress89.model import DeploymentEnvironment

from .route import router

BootVariable: t.Final[str] = "__Progress89_BOOT"


def handle_grading_error(request: Request, exc: Exception) -> FastAPIJSONResponse:
    err = t.cast(GradingError, exc)
    return FastAPIJSONResponse(err.to_detail(), status_code=err.status_code)


@di.inject
def _create_app(
    config: GradebookWebSettings = di.Provide["config.web.gradebook", di.as_(GradebookWebSettings)],
    env: DeploymentEnvironment = di.Provide["env"],
    root_path: Path = di.Provide["root"],
) -> FastAPI:
    app = FastAPI(
        title="89 Progress",
        description="Grading scales, evaluations and student progress",
        version=progress89.__version__,
        default_response_class=FastAPIJSONResponse,
    )

    if env is DeploymentEnvironment.Local and config.frontend is not None:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[
                f"http://{config.frontend.host}:{config.frontend.port}",
                f"http://localhost:{config.frontend.port}",
            ],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(GradingError, handle_grading_error)
    app.include_router(router)
    return app


def create_app() -> FastAPI:
    """Factory function for uvicorn."""
    boot_vars = os.getenv(BootVariable)
    if boot_vars:
        boot_cf = BootConfiguration.model_validate_json(boot_vars)
        ct = Progress89Container()
        Progress89Container.boot(ct, **dict(boot_cf))
        ct.wire(modules=["progress89.web.gradebook.main", "progress89.auth.middleware"])
        return _create_app(
            config=GradebookWebSettings(**ct.config.web.gradebook()),
            env=boot_cf.env,
            root_path=t.cast(Path, ct.root()),
        )
    return _create_app()
