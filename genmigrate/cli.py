#!filepath: genmigrate/cli.py
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from genmigrate import AppConfig, __version__, logs
from genmigrate.core.types import MetadataOverrides
from genmigrate.migrations.registry import MigrationRegistry
from genmigrate.utils.errors import GenesisMigrationError
from genmigrate.workflows.migrate_genesis import migrate_genesis_file

app = typer.Typer(help="Genesis migration CLI")

err_console = Console(stderr=True)


@logs.catch(msg="migration aborted")
def _migrate(
        genesis_file: Path,
        *,
        cfg: AppConfig,
        plugins: List[str],
        overrides: MetadataOverrides,
        replacement_keys: str,
) -> bytes:
    registry = MigrationRegistry().load_plugins(plugins)
    return migrate_genesis_file(
        genesis_file,
        cfg=cfg,
        registry=registry,
        overrides=overrides,
        replacement_keys=replacement_keys,
    )


@app.command()
def version():
    typer.echo(f"v{__version__}")


@app.command()
def migrate(
    genesis_file: Path = typer.Argument(..., help="exported genesis file"),
    genesis_time: str = typer.Option("", help="override genesis_time with this flag"),
    initial_height: int = typer.Option(0, min=0, help="Set the starting height for the chain"),
    replacement_cons_keys: str = typer.Option(
        "", help="Provide a JSON file to replace the consensus keys of validators"
    ),
    chain_id: str = typer.Option("", help="override chain_id with this flag"),
    no_prop_29: bool = typer.Option(
        False, "--no-prop-29", help="Do not implement fund recovery from prop29"
    ),
    plugin: Optional[List[str]] = typer.Option(
        None,
        "--plugin",
        help="module exposing register_transforms(registry), repeatable. "
        "No transforms ship with genmigrate: every label in migration.versions "
        "(default v0.43) must come from a plugin here or in the config",
    ),
    config: Optional[Path] = typer.Option(None, help="YAML config, defaults to the bundled base.yml"),
):
    """
    Migrate the source genesis into the target version and print to STDOUT.

    The app-state transforms are not bundled. Load them with --plugin (or
    migration.plugins in the config), otherwise the run fails with
    "unknown migration function for version: v0.43".

    Example:
    $ genmigrate migrate /path/to/genesis.json --plugin my_chain.migrations --chain-id=cosmoshub-4 --genesis-time=2019-04-22T17:00:00Z --initial-height=5000
    """
    try:
        cfg = AppConfig.load(str(config) if config else None)
    except (FileNotFoundError, ValueError) as e:
        err_console.print(f"[red]config error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    logs.reconfigure(**cfg.log.sink_kwargs())

    if no_prop_29:
        logs.info("[migrate] --no-prop-29 set, fund recovery is not part of this migration")

    overrides = MetadataOverrides(
        genesis_time=genesis_time,
        chain_id=chain_id,
        initial_height=initial_height,
    )

    try:
        out = _migrate(
            genesis_file,
            cfg=cfg,
            plugins=[*cfg.migration.plugins, *(plugin or [])],
            overrides=overrides,
            replacement_keys=replacement_cons_keys,
        )
    except GenesisMigrationError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    typer.echo(out.decode("utf-8"))


if __name__ == "__main__":
    app()

# python -m genmigrate.cli migrate genesis.json --chain-id cosmoshub-4
