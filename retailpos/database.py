"""SQLAlchemy engine, scoped session and declarative base for the POS models."""
import uuid
from sqlalchemy import create_engine
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()

# Bound by init_db(); read them through get_session() at call time
engine = None
db_session = None


def _engine_options(database_uri, echo):
    """Pool settings per backend; SQLite in-memory needs one shared connection."""
    if database_uri.startswith('sqlite'):
        return {
            'echo': echo,
            'connect_args': {'check_same_thread': False},
            'poolclass': StaticPool,
        }
    return {
        'echo': echo,
        'pool_pre_ping': True,  # Enable connection health checks
        'pool_size': 10,
        'max_overflow': 20,
    }


def init_db(app):
    """Create the engine and the request-scoped session for this app."""
    global engine, db_session
    
    database_uri = app.config['SQLALCHEMY_DATABASE_URI']
    engine = create_engine(
        database_uri,
        **_engine_options(database_uri, app.config.get('SQLALCHEMY_ECHO', False))
    )
    
    db_session = scoped_session(
        sessionmaker(autocommit=False, autoflush=False, bind=engine)
    )
    
    Base.query = db_session.query_property()
    
    @app.teardown_appcontext
    def release_session(exception=None):
        # Anything not committed by the request is discarded
        if exception:
            db_session.rollback()
        db_session.remove()


def create_all():
    """Create every table known to the models (tests and first boot)."""
    import retailpos.models  # noqa: F401  register mappers
    Base.metadata.create_all(bind=engine)


def drop_all():
    """Drop every table known to the models."""
    import retailpos.models  # noqa: F401
    Base.metadata.drop_all(bind=engine)


def get_session():
    """Current scoped session (None before init_db)."""
    return db_session


def generate_id():
    """Opaque string primary key shared by every model."""
    return str(uuid.uuid4())


def run_in_transaction(operation, *args, **kwargs):
    """
    Run a service operation with the request session and commit.

    Services only flush; this is the single commit point for blueprints.
    Rolls back and re-raises on any error.
    """
    session = get_session()
    try:
        result = operation(session, *args, **kwargs)
        session.commit()
        return result
    except Exception:
        session.rollback()
        raise
