from sqlmodel import SQLModel, create_engine, Session
from app.config import settings

engine_kwargs = {"echo": False}

if settings.database_url.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    engine_kwargs.update(
        pool_pre_ping=True,      # checks dead connections
        pool_recycle=1800,       # refresh every 30 min
    )

engine = create_engine(settings.database_url, **engine_kwargs)


def create_db_and_tables():
    import app.models  # noqa: F401  registers every table on the metadata
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
