import logging

import click

from dotenv import load_dotenv

from daybook.config import DaybookConfig
from daybook.server.server import DaybookServer


load_dotenv()


@click.command()
@click.option('--host', 'host', default=None, help='Interface to bind.')
@click.option('--port', 'port', default=None, type=int, help='Port to bind.')
@click.option(
    '--groups',
    'groups',
    default=None,
    help='Comma separated group labels, e.g. "mon,tue,wed".',
)
@click.option(
    '--database-url',
    'database_url',
    default=None,
    help='SQLAlchemy URL of a durable store.',
)
@click.option('--verbose', is_flag=True, help='Enable debug logging.')
def main(
    host: str | None,
    port: int | None,
    groups: str | None,
    database_url: str | None,
    verbose: bool,
):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO)
    config = DaybookConfig.from_env(
        host=host, port=port, groups=groups, database_url=database_url
    )
    DaybookServer(config).start()


if __name__ == '__main__':
    main()
