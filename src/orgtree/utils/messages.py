"""User-visible messages.

Every message is echoed to stderr with an ``[orgtree]`` prefix and also
recorded in the structured log.
"""

import click
import structlog

logger = structlog.get_logger()

PREFIX = "[orgtree]"


def echo_warning(message: str) -> None:
    logger.warning("user_warning", message=message)
    click.secho(f"{PREFIX} {message}", fg="yellow", err=True)


def echo_info(message: str) -> None:
    logger.info("user_info", message=message)
    click.echo(f"{PREFIX} {message}", err=True)


def echo_error(message: str) -> None:
    logger.error("user_error", message=message)
    click.secho(f"{PREFIX} {message}", fg="red", err=True)
