"""Command-line interface for CrudBase.

This module provides the CLI commands for running the service and for
inspecting collection definitions without starting it.
"""

import json
import sys
from typing import NoReturn

import click

from crudbase import __version__
from crudbase.core.config import get_settings
from crudbase.core.exceptions import CrudBaseError, DefinitionError
from crudbase.core.logging import configure_logging, get_logger
from crudbase.domain.services.model_loader import ModelLoader
from crudbase.domain.services.schema_generator import OperationId


def _loader() -> ModelLoader:
    settings = get_settings()
    return ModelLoader(
        enable_limit_constraint=settings.crud_limit_constraint_enabled,
        max_limit=settings.crud_max_limit,
    )


@click.group()
@click.version_option(version=__version__, prog_name="CrudBase")
def cli() -> None:
    """CrudBase - Configuration-driven CRUD service.

    Collections are declared as JSON definitions; filters, update commands
    and HTTP schemas are derived from them at startup.
    """


@cli.command()
@click.option(
    "--host",
    type=str,
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
@click.option(
    "--reload",
    is_flag=True,
    default=False,
    help="Enable auto-reload for development",
)
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the CrudBase server."""
    import uvicorn

    settings = get_settings()

    # Apply CLI overrides
    bind_host = host or settings.host
    bind_port = port or settings.port

    # Configure logging before starting server
    configure_logging(settings)

    logger = get_logger(__name__)
    logger.info(
        "Starting CrudBase server",
        host=bind_host,
        port=bind_port,
        workers=settings.workers,
        reload=reload,
        environment=settings.environment,
    )

    uvicorn.run(
        "crudbase.infrastructure.api.app:app",
        host=bind_host,
        port=bind_port,
        workers=1 if reload else settings.workers,
        reload=reload,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


@cli.command()
@click.argument("folder", type=click.Path(file_okay=False))
def check(folder: str) -> None:
    """Validate every collection definition in FOLDER."""
    try:
        models = _loader().load_folder(folder)
    except DefinitionError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for model in models:
        definition = model.definition
        click.echo(
            f"{model.name:<24} {definition.endpoint_base_path:<28} "
            f"fields={len(definition.fields):<3} "
            f"indexes={len(definition.indexes):<3} "
            f"id={definition.id_type.value}"
        )
    click.echo(f"{len(models)} collection(s) OK")


@cli.command()
@click.argument("folder", type=click.Path(file_okay=False))
@click.argument("collection")
@click.option(
    "--operation",
    type=click.Choice([operation.value for operation in OperationId]),
    default=None,
    help="Print a single operation schema",
)
@click.option(
    "--definition",
    is_flag=True,
    default=False,
    help="Print the normalized definition schema instead",
)
def schemas(folder: str, collection: str, operation: str | None, definition: bool) -> None:
    """Print the generated schemas of COLLECTION as JSON."""
    try:
        model = _loader().load_folder(folder).get(collection)
    except CrudBaseError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if definition:
        click.echo(json.dumps(model.json_schema, indent=2))
        return

    generated = model.nested_schema_generator.generate_all()
    output = generated[operation] if operation else generated
    click.echo(json.dumps(output, indent=2))


@cli.command()
def info() -> None:
    """Display CrudBase configuration."""
    settings = get_settings()

    click.echo(f"""
CrudBase v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Debug:        {settings.debug}
  Helpers:      {settings.helpers_prefix}

Server:
  Host:         {settings.host}
  Port:         {settings.port}
  Workers:      {settings.workers}

Collections:
  Folder:       {settings.collection_definition_folder}
  Limit check:  {settings.crud_limit_constraint_enabled}
  Max limit:    {settings.crud_max_limit}

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `crudbase` command is run
    or when using `python -m crudbase`.
    """
    cli()


if __name__ == "__main__":
    main()
