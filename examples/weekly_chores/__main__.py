import asyncio
import logging

import click
import httpx

from daybook.client import DaybookClient, DaybookClientError
from daybook.config import DaybookConfig
from daybook.server import DaybookServer
from daybook.types import Task


CHORES = [
    Task(group='mon', description='milk cows'),
    Task(group='mon', description='feed cows'),
    Task(group='mon', description='wash cows'),
    Task(group='tue', description='wash laundry'),
    Task(group='tue', description='fold laundry'),
    Task(group='tue', description='iron laundry'),
    Task(group='wed', description='flip burgers'),
    Task(group='thu', description='join army'),
    Task(group='fri', description='kill time'),
    Task(group='sat', description='have beer'),
    Task(group='sat', description='make merry'),
    Task(group='sun', description='take aspirin'),
    Task(group='sun', description='pray quietly'),
]

# Expected output:
# mon: milk cows, feed cows, wash cows
# tue: wash laundry, fold laundry, iron laundry
# wed: flip burgers
# thu: join army
# fri: kill time
# sat: have beer, make merry
# sun: take aspirin, pray quietly


async def run() -> None:
    server = DaybookServer(DaybookConfig())
    app = server.app()

    async with (
        server.lifespan(app),
        httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url='http://daybook'
        ) as httpx_client,
    ):
        client = DaybookClient(httpx_client, 'http://daybook')

        for chore in CHORES:
            try:
                await client.post(chore.group, chore)
            except DaybookClientError as e:
                print(f'client post error: {e}')

        for day in await client.get_groups():
            try:
                task_list = await client.get(day)
            except DaybookClientError as e:
                print(f'client get error: {e}')
                continue
            print(f'{day}: {client.render(task_list)}')


@click.command()
@click.option('--verbose', is_flag=True, help='Show server and client logs.')
def main(verbose: bool):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    asyncio.run(run())


if __name__ == '__main__':
    main()
