from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from formbuilder.config.env_config import settings
from formbuilder.utils.logger_utils import log_info

DATABASE_URL = settings.database_url

# SQLite connections are shared across the request threadpool
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    DATABASE_URL,
    echo=settings.DB_ECHO,
    pool_pre_ping=True,
    connect_args=connect_args,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

log_info(context="DATABASE", message=f"Database engine created for {engine.url.get_backend_name()}")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
