"""imp init CLI command for interactive project setup.

Asks for an Api-Key and a model, writes the model's latest device and
agent code into the current directory, and saves .impconfig.
"""

from __future__ import annotations

import traceback
from pathlib import Path

import typer

from impcli.api.client import ImpClient
from impcli.cli.output import err_console, print_debug, print_error, print_warning
from impcli.models.config import ClientSettings
from impcli.storage.config_store import ConfigFileError, ConfigStore
from impcli.workflow.init import InitFlags, InitWorkflow, Stage
from impcli.workflow.prompts import ConsolePrompter


def init(
    overwrite: bool = typer.Option(
        False, "--overwrite", help="Overwrite configuration if it already exists"
    ),
    keep_code: bool = typer.Option(
        False, "--keepCode", help="Do not overwrite device and agent code with the latest model code"
    ),
    keep_device_code: bool = typer.Option(
        False, "--keepDeviceCode", help="Do not overwrite device code with the latest model device code"
    ),
    keep_agent_code: bool = typer.Option(
        False, "--keepAgentCode", help="Do not overwrite agent code with the latest model agent code"
    ),
    debug: bool = typer.Option(False, "--debug", help="Print API request traces to stderr"),
) -> None:
    """Initialize a new imp project in the current directory.

    Prompts for an Api-Key and a model id or name (creating the model if
    needed), fetches the latest code, and saves .impconfig.
    """
    flags = InitFlags(
        overwrite=overwrite,
        keep_code=keep_code,
        keep_device_code=keep_device_code,
        keep_agent_code=keep_agent_code,
    )
    settings = ClientSettings.from_env()
    log = print_debug if debug else None

    try:
        store = ConfigStore(Path.cwd(), discard_invalid_local=overwrite)
    except ConfigFileError as e:
        print_error(str(e))
        raise typer.Exit(code=1)
    if store.local_error is not None:
        print_warning(f"Ignoring unreadable config, {store.local_error}")

    workflow = InitWorkflow(
        store,
        ConsolePrompter(),
        lambda api_key: ImpClient(api_key, settings, log=log),
        flags,
    )

    try:
        stage = workflow.run()
    except (typer.Exit, typer.Abort):
        raise
    except Exception as e:
        print_error(str(e) or type(e).__name__)
        if debug:
            err_console.print(traceback.format_exc(), markup=False)
        raise typer.Exit(code=1)

    if stage is not Stage.DONE:
        raise typer.Exit(code=1)
