"""Command-line interface for the asset combiner."""

import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from loguru import logger

from asset_combiner.combiner import Combiner, CombinerSettings
from asset_combiner.config_loader import (
    ensure_directories,
    get_bundle,
    get_combiner_config,
    get_translations_config,
    load_config,
)
from asset_combiner.sync_filter import SyncFilter, walk
from asset_combiner.translator import CatalogTranslator, yaml_catalog_loader


def setup_logging(config: dict, verbose: bool = False):
    """Setup logging configuration."""
    log_config = config.get("logging", {})
    level = "DEBUG" if verbose else log_config.get("level", "INFO")
    log_file = log_config.get("file", "data/logs/combiner.log")

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}",
    )
    logger.add(
        log_file,
        level=level,
        rotation=log_config.get("rotation", "1 week"),
        retention=log_config.get("retention", "1 month"),
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name} | {message}",
    )


def build_combiner(config: dict, bundle: str) -> Combiner:
    """Create a combiner holding the registrations of a configured bundle."""
    combiner = Combiner(CombinerSettings.from_config(config))
    for item in get_bundle(config, bundle):
        version = item.get("version")
        version = str(version) if version is not None else None
        if "paths" in item:
            combiner.register_multiple(item["paths"], media=item.get("media", "screen"), version=version)
        else:
            combiner.register(item["path"], media=item.get("media", "all"), version=version)
    return combiner


@click.group()
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx, config: Optional[str], verbose: bool):
    """Asset combiner - bundle style sheets and scripts into cached files."""
    ctx.ensure_object(dict)

    try:
        cfg = load_config(config)
        ctx.obj["config"] = cfg
        ctx.obj["config_path"] = config

        ensure_directories(cfg)
        setup_logging(cfg, verbose=verbose)
        logger.debug("Asset combiner initialized")

    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("bundle")
@click.option("--debug/--no-debug", default=None, help="Emit per-file markup instead of a combined file")
@click.pass_context
def combine(ctx, bundle: str, debug: Optional[bool]):
    """Build the combined file of BUNDLE and print its path."""
    config = ctx.obj["config"]

    try:
        combiner = build_combiner(config, bundle)
        click.echo(combiner.get_combined_output(debug_mode=debug))

    except Exception as e:
        logger.exception(f"Combining bundle {bundle} failed")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("bundle")
@click.pass_context
def urls(ctx, bundle: str):
    """Print the individual URLs of BUNDLE, one per line."""
    config = ctx.obj["config"]

    try:
        combiner = build_combiner(config, bundle)
        for url in combiner.list_urls():
            click.echo(url)

    except Exception as e:
        logger.exception(f"Listing URLs of bundle {bundle} failed")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("subdir", required=False, default="")
@click.pass_context
def scan(ctx, subdir: str):
    """List files below the web root that take part in synchronisation."""
    config = ctx.obj["config"]

    try:
        root = Path(str(get_combiner_config(config).get("web_root", ".")))
        sync_filter = SyncFilter.from_config(config)
        count = 0
        for path in walk(root, sync_filter, start=subdir):
            click.echo(path)
            count += 1
        logger.info(f"Scan accepted {count} file(s)")

    except Exception as e:
        logger.exception("Scan failed")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("key")
@click.option("--domain", "-d", default="default", show_default=True, help="Message domain")
@click.option("--locale", "-l", default=None, help="Locale (defaults to translations.locale)")
@click.option("--param", "-p", "params", multiple=True, help="Positional message parameter")
@click.pass_context
def translate(ctx, key: str, domain: str, locale: Optional[str], params: Tuple[str, ...]):
    """Look KEY up in the message catalog."""
    config = ctx.obj["config"]

    try:
        translations_cfg = get_translations_config(config)
        translator = CatalogTranslator(
            yaml_catalog_loader(translations_cfg.get("dir", "languages")),
            locale=str(translations_cfg.get("locale", "en")),
        )
        click.echo(translator.translate(key, list(params), domain, locale))

    except Exception as e:
        logger.exception("Translation failed")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
