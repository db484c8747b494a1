import asyncio

import click
from loguru import logger
from pydantic import ValidationError

from jenkins_mcp.clients.jenkins.client import JenkinsClient
from jenkins_mcp.config.settings import (
    ApplicationSettings,
    JenkinsSettings,
    LogLevelType,
    TransportType,
    load_settings,
)
from jenkins_mcp.log.logger_setup import setup_logger
from jenkins_mcp.server import create_server
from jenkins_mcp.version import __version__


async def serve(settings: JenkinsSettings, application: ApplicationSettings) -> None:
    async with JenkinsClient.from_settings(settings) as client:
        server = create_server(client)
        if application.transport == "http":
            logger.info(
                f"Serving Jenkins MCP tools over http on {application.host}:{application.port}"
            )
            await server.run_async(
                transport="http", host=application.host, port=application.port
            )
        else:
            logger.info("Serving Jenkins MCP tools over stdio")
            await server.run_async(transport="stdio")


@click.command(name="jenkins-mcp")
@click.version_option(__version__, prog_name="jenkins-mcp")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="""Path to a YAML configuration file. If not specified, ./config.yaml
            is used when present, JENKINS__* environment variables always take precedence.""",
)
@click.option(
    "-l",
    "--log-level",
    "log_level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default=None,
    help="""Set the logging level. Supported levels are DEBUG, INFO, WARNING, ERROR,
            and CRITICAL. If not specified, APPLICATION__LOG_LEVEL or INFO is used.""",
)
@click.option(
    "-t",
    "--transport",
    "transport",
    type=click.Choice(["stdio", "http"]),
    default=None,
    help="""MCP transport to serve on. If not specified, stdio is used.""",
)
@click.option("--host", "host", type=str, default=None, help="Host for the http transport.")
@click.option(
    "-p", "--port", "port", type=int, default=None, help="Port for the http transport."
)
def main(
    config_path: str | None,
    log_level: LogLevelType | None,
    transport: TransportType | None,
    host: str | None,
    port: int | None,
) -> None:
    """
    Runs an MCP server exposing the Jenkins REST API as tools.
    """
    overrides = {
        key: value
        for key, value in {
            "log_level": log_level,
            "transport": transport,
            "host": host,
            "port": port,
        }.items()
        if value is not None
    }
    try:
        application = ApplicationSettings(**overrides)
        settings = load_settings(config_path)
    except ValidationError as e:
        raise click.ClickException(f"Invalid configuration:\n{e}") from e

    setup_logger(application.log_level, settings.get_sensitive_fields_data())
    logger.info(f"Starting jenkins-mcp {__version__} for {settings.base_url}")
    asyncio.run(serve(settings, application))
