from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.engine.url import make_url

from laundry import config

DATABASE_URL = config.DATABASE_URL

# SQLite needs the thread check off for the TestClient; Postgres takes no extra flags
url = make_url(DATABASE_URL)
connect_args = {"check_same_thread": False} if url.get_backend_name() == "sqlite" else {}

engine_options = {"connect_args": connect_args, "pool_pre_ping": True}
if url.get_backend_name() != "sqlite":
    engine_options.update(pool_size=5, max_overflow=10)

engine = create_engine(DATABASE_URL, **engine_options)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
