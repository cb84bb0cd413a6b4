from sqlmodel import SQLModel, create_engine, Session

from config import DATABASE_URL

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=False, connect_args=connect_args)


def init_db():
    import models  # noqa: F401  (registers tables on SQLModel.metadata)
    SQLModel.metadata.create_all(engine)


def session_factory() -> Session:
    return Session(engine)


def get_session():
    with Session(engine) as session:
        yield session


def get_session_factory():
    """For code that opens its own sessions (one per concurrent write)."""
    return session_factory
