from sqlmodel import create_engine, Session, SQLModel
from ..core.config import settings

# Helper function to ensure URL format is correct
def get_db_url():
    url = settings.DATABASE_URL
    if not url:
        return "sqlite:///./taskboard.db"
    # Drop async driver suffixes, the API runs on the sync engine
    url = url.replace("+aiosqlite", "").replace("+asyncpg", "")
    return url.replace("postgres://", "postgresql://", 1)

db_url = get_db_url()

# --- CONFIGURATION FOR SQLITE ---
if db_url.startswith("sqlite"):
    engine = create_engine(
        db_url,
        echo=settings.SQL_ECHO,
        connect_args={"check_same_thread": False}
    )

# --- CONFIGURATION FOR POSTGRESQL ---
else:
    engine = create_engine(
        db_url,
        echo=settings.SQL_ECHO,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10
    )


def create_db_and_tables():
    # Import so both tables are registered on the metadata
    from .. import models  # noqa: F401
    SQLModel.metadata.create_all(engine)


# Dependency: one session per request, closed when the request finishes.
# Objects stay readable after commit so deleted documents can still be returned.
def get_session():
    with Session(engine, expire_on_commit=False) as session:
        yield session
