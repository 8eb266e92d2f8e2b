import click
from sqlalchemy.exc import SQLAlchemyError


@click.command()
def init_db():
    """Create the database tables."""
    from marketplace_backend.server import init_database

    try:
        init_database()
    except SQLAlchemyError as e:
        raise click.ClickException(f"Could not initialize the database: {e}")

    click.echo("Database initialized")


@click.command()
@click.option("--host", "-h", "host", default="0.0.0.0", show_default=True)
@click.option("--port", "-p", "port", default=8000, show_default=True, type=int)
@click.option("--reload", "reload", is_flag=True, default=False)
def serve(host, port, reload):
    """Run the API server."""
    import uvicorn
    from marketplace_backend.settings import settings

    uvicorn.run(
        "marketplace_backend.server:app",
        host=host,
        port=port,
        log_level=settings.LOG_LEVEL.lower(),
        reload=reload,
        workers=1
    )


@click.command()
@click.option("--name", "-n", "name", prompt=True)
@click.option("--email", "-e", "email", prompt=True)
@click.option("--password", "-p", "password", prompt=True, hide_input=True, confirmation_prompt=True)
def create_seller(name, email, password):
    """Create a seller account."""
    from marketplace_backend.database import get_db
    from marketplace_backend.interface.tokens import hash_password
    from marketplace_backend.model.auth import User
    from marketplace_backend.permissions.principal import SELLER_ROLE
    from marketplace_backend.repositories import DuplicateError, RepositoryError, UserRepository

    db = next(get_db())
    try:
        users = UserRepository(db)
        if users.find_by_email(email) is not None:
            raise click.ClickException(f"A user with email {email} already exists")

        user = users.create(User(
            name=name,
            email=email.lower(),
            password=hash_password(password),
            role=SELLER_ROLE,
            accessible_course_ids=[]
        ))
    except (DuplicateError, RepositoryError) as e:
        raise click.ClickException(str(e))
    finally:
        db.close()

    click.echo(f"Created seller {user.id}")
