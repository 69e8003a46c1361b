"""CLI entry point for the Mercury terminal mail client."""

import asyncio
import logging

import click
from dotenv import load_dotenv

from mercury.api.client import mail_client
from mercury.auth import AuthError, get_secret
from mercury.config import TuiConfig

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s — %(message)s"


def configure_logging(log_file: str, level: str) -> None:
    """Send logs to ``log_file``, or nowhere.

    The terminal belongs to the UI while it runs, so records are never
    written to stderr.
    """
    if log_file:
        logging.basicConfig(
            filename=log_file,
            level=getattr(logging, level.upper(), logging.INFO),
            format=_LOG_FORMAT,
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        logging.basicConfig(handlers=[logging.NullHandler()], level=logging.WARNING)


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Mercury mail — terminal client for the Mercury Mail API."""
    load_dotenv()
    ctx.obj = TuiConfig.from_env()


@cli.command()
@click.option("--api-url", default=None, help="API base URL (default: $MERCURY_API_URL).")
@click.option("--folder", default=None, help="Folder to list (default: inbox).")
@click.option("--page-size", type=click.IntRange(min=1), default=None, help="Emails to fetch per refresh.")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Write debug logs here.")
@click.pass_obj
def tui(
    config: TuiConfig,
    api_url: str | None,
    folder: str | None,
    page_size: int | None,
    log_file: str | None,
) -> None:
    """Interactive email client."""
    if api_url:
        config.api_url = api_url
    if folder:
        config.folder = folder
    if page_size:
        config.page_size = page_size
    if log_file:
        config.log_file = log_file

    configure_logging(config.log_file, config.log_level)
    try:
        secret = get_secret()
    except AuthError as exc:
        raise click.ClickException(str(exc)) from exc

    asyncio.run(_tui_async(config, secret))


async def _tui_async(config: TuiConfig, secret: str) -> None:
    # Textual is only needed for the interactive command.
    from mercury.tui.app import MercuryApp
    from mercury.tui.model import Model

    async with mail_client(base_url=config.api_url, secret=secret) as client:
        model = Model(
            client,
            page_size=config.page_size,
            folder=config.folder,
            editor=config.editor,
        )
        await MercuryApp(model).run_async()
    logger.info("TUI session ended")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
