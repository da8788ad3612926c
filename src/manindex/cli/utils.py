"""CLI utilities."""

from pathlib import Path

import click

from manindex.config.loader import load_config
from manindex.config.models import ManIndexConfig
from manindex.core.errors import ConfigError
from manindex.core.logging import configure_logging
from manindex.index.models import DocClass

CLASS_CHOICE = click.Choice([c.value for c in DocClass])


def get_config(ctx: click.Context) -> ManIndexConfig:
    """Config for this invocation, loaded once and cached on the context.

    Logging is reconfigured from the loaded ``logging`` section; ``--verbose``
    still forces DEBUG.

    Raises:
        click.ClickException: The configuration is invalid.
    """
    obj = ctx.ensure_object(dict)
    if "config" not in obj:
        config_path: Path | None = obj.get("config_path")
        overrides = {}
        if doc_root := obj.get("doc_root"):
            overrides["manual"] = {"doc_root": str(doc_root)}
        try:
            config = load_config(config_path, **overrides)
        except ConfigError as e:
            raise click.ClickException(e.message) from e
        logging_config = config.logging
        if obj.get("verbose"):
            logging_config = logging_config.model_copy(update={"level": "DEBUG"})
        configure_logging(config=logging_config)
        obj["config"] = config
    result: ManIndexConfig = obj["config"]
    return result
