from logging import Logger

import click
import uvicorn
from fastapi import FastAPI

from github_testgen.settings import Settings
from github_testgen.utilities.logging import configure_logging
from github_testgen.web.app import create_app


def new_app() -> FastAPI:
    settings: Settings = Settings.from_env()

    logger: Logger = configure_logging(level=settings.log_level)
    logger.info(f"Starting GitHub TestGen for {settings.frontend_origin} in {settings.environment}")

    return create_app(settings=settings)


@click.command()
@click.option("--host", envvar="HOST", default="127.0.0.1", show_default=True, help="The interface to listen on")
@click.option("--port", envvar="PORT", type=int, default=5000, show_default=True, help="The port to listen on")
@click.option(
    "--log-level",
    envvar="LOG_LEVEL",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="info",
    show_default=True,
    help="The log level of the server",
)
def run_server(host: str, port: int, log_level: str):
    uvicorn.run("github_testgen.main:new_app", factory=True, host=host, port=port, log_level=log_level.lower())


if __name__ == "__main__":
    run_server()
