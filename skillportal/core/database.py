"""
Database configuration and session management for the Skill Portal.

Sets up SQLAlchemy engine, session factory, base model and the
single-statement upsert used for every unique-pair write.
"""

from typing import Any, Dict, Generator, Iterable, Optional, Type
from sqlalchemy import create_engine, event, MetaData, text
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
import logging

from .config import settings


# Configure logging
logger = logging.getLogger(__name__)


# SQLAlchemy metadata conventions for better constraint naming
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}

metadata = MetaData(naming_convention=convention)


# Create engine based on environment
if settings.TESTING:
    # Use in-memory SQLite for testing
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    # Use PostgreSQL for development/production
    engine = create_engine(
        settings.DATABASE_URL,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=10,        # Number of connections to maintain
        max_overflow=20,     # Maximum overflow connections
        echo=settings.DEBUG, # Log SQL statements if in debug mode
    )


if engine.dialect.name == "sqlite":
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


# Base class for models
Base = declarative_base(metadata=metadata)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency to get database session.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def upsert(
    db: Session,
    model: Type[Any],
    values: Dict[str, Any],
    conflict_columns: Iterable[str],
    update_columns: Optional[Iterable[str]] = None
) -> None:
    """
    Insert a row or update it in place, as one statement.

    The conflict columns must be covered by a unique constraint. With no
    update columns the statement is ``ON CONFLICT DO NOTHING``. The caller
    owns the transaction.

    Args:
        db: Database session
        model: Mapped class to write
        values: Column values for the insert
        conflict_columns: Columns of the unique constraint to resolve on
        update_columns: Columns overwritten from the inserted values on conflict
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"upsert is not supported on {dialect}")

    stmt = insert(model).values(**values)
    conflict_columns = list(conflict_columns)
    if update_columns:
        stmt = stmt.on_conflict_do_update(
            index_elements=conflict_columns,
            set_={column: stmt.excluded[column] for column in update_columns}
        )
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=conflict_columns)
    db.execute(stmt)


def init_db(db: Session) -> None:
    """
    Initialize database with required data.

    Creates the first admin account when it does not exist yet.

    Args:
        db: Database session
    """
    from skillportal.models.user import User, UserRole
    from skillportal.core.security import get_password_hash

    # Check if admin user exists
    admin_user = db.query(User).filter(
        User.email == settings.FIRST_ADMIN_EMAIL
    ).first()

    if not admin_user:
        admin_user = User(
            email=settings.FIRST_ADMIN_EMAIL,
            name=settings.FIRST_ADMIN_NAME,
            hashed_password=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
            role=UserRole.ADMIN.value,
            is_active=True
        )
        db.add(admin_user)
        db.commit()
        logger.info(f"Admin user created: {settings.FIRST_ADMIN_EMAIL}")


def check_database_connection() -> bool:
    """
    Check if database is accessible.

    Returns:
        bool: True if database is accessible, False otherwise
    """
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False


class DatabaseManager:
    """
    Database manager for handling database operations.
    """

    @staticmethod
    def create_all_tables():
        """Create all database tables."""
        import skillportal.models  # noqa: F401 - registers every model
        Base.metadata.create_all(bind=engine)
        logger.info("All database tables created successfully")

    @staticmethod
    def drop_all_tables():
        """Drop all database tables. USE WITH CAUTION!"""
        Base.metadata.drop_all(bind=engine)
        logger.warning("All database tables dropped")
