import os
import click
from dotenv import load_dotenv

# Settings are read from the environment on import, so .env must be loaded first
load_dotenv(os.environ.get("MARKETPLACE_ENV_FILE", ".env"))

from .admin import create_seller, init_db, serve

@click.group()
def cli():
    pass

cli.add_command(init_db,"init-db")
cli.add_command(serve,"serve")
cli.add_command(create_seller,"create-seller")

if __name__ == '__main__':
    cli()
