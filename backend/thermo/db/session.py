from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from ..core.config import settings

_sqlite = settings.DB_URI.startswith("sqlite")
engine = create_engine(settings.DB_URI, connect_args={"check_same_thread": False} if _sqlite else {})
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

if _sqlite:
    # Let SQLAlchemy own BEGIN so savepoints nest inside a real transaction
    @event.listens_for(engine, "connect")
    def _sqlite_connect(dbapi_conn, _):
        dbapi_conn.isolation_level = None

    @event.listens_for(engine, "begin")
    def _sqlite_begin(conn):
        conn.exec_driver_sql("BEGIN")

class Base(DeclarativeBase): pass

def init_db():
    from ..models import operator, device, config, reading  # noqa
    # Fails loudly when the store is unreachable so the service never starts half-up
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    Base.metadata.create_all(bind=engine)

def get_db():
    db = SessionLocal()
    try: yield db
    finally: db.close()
