from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from backoffice.core.config import settings

# Support both PostgreSQL and SQLite via centralized settings
DATABASE_URL = settings.database_url


def configure_sqlite(engine):
    """
    Let pysqlite honour SAVEPOINTs so begin_nested() works.
    The driver's own transaction handling is switched off and SQLAlchemy emits BEGIN.
    """
    @event.listens_for(engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


if DATABASE_URL.startswith("postgresql"):
    engine = create_engine(
        DATABASE_URL,
        pool_pre_ping=True,
        connect_args={"options": f"-c statement_timeout={settings.db_statement_timeout_ms}"},
    )
else:
    # SQLite configuration for local development/testing
    engine = configure_sqlite(create_engine(
        DATABASE_URL,
        connect_args={
            "check_same_thread": False,
            "timeout": settings.db_statement_timeout_ms / 1000,
        },
    ))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    """
    Session Provider: Provides a database session per request.
    Transaction management is handled explicitly in the Service Layer.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    """
    Registers all domain models and initializes the database schema.
    This should be called during the application startup lifespan.
    """
    # Import all models to ensure they are registered with Base.metadata before create_all
    from backoffice.models import (  # noqa: F401
        employee, holiday, office_schedule, salary_rule,
        attendance, leave_request, payroll, payroll_component, audit_log
    )
    Base.metadata.create_all(bind=engine)
