# db.py - SQLAlchemy engine, sessions and connection supervision for the record store
import logging
from typing import Any, Dict, Optional
from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy import create_engine, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from models import Base, Lamaran

logger = logging.getLogger("lamaran-store")

CONNECTING = "connecting"
CONNECTED = "connected"
DISCONNECTED = "disconnected"
DISCONNECTING = "disconnecting"


class StoreNotStarted(SQLAlchemyError):
    pass


class RecordStore:
    """Process-wide handle on the lamaran database.

    ``start()`` builds the engine, makes one connection attempt and schedules a
    background job that pings the database every ``retry_interval`` seconds,
    reconnecting (and creating the table) whenever it is unreachable. The
    handle is shared by all requests and only stopped at process shutdown.
    """

    def __init__(self, database_url: Optional[str], retry_interval: float = 5.0,
                 pool_size: int = 10, connect_timeout: int = 5,
                 engine_options: Optional[Dict[str, Any]] = None):
        self.database_url = database_url
        self.retry_interval = retry_interval
        self.pool_size = pool_size
        self.connect_timeout = connect_timeout
        self.engine_options = dict(engine_options or {})
        self.engine = None
        self.SessionLocal = None
        self.status = DISCONNECTED
        self._schema_ready = False
        self._scheduler = None

    @property
    def host(self) -> Optional[str]:
        return self.engine.url.host if self.engine is not None else None

    @property
    def name(self) -> Optional[str]:
        return self.engine.url.database if self.engine is not None else None

    @property
    def connected(self) -> bool:
        return self.status == CONNECTED

    def engine_kwargs(self) -> Dict[str, Any]:
        options = {"echo": False, "future": True, "pool_pre_ping": True}
        if not self.database_url.startswith("sqlite"):
            options["pool_size"] = self.pool_size
            # bounds the blocking first ping at startup as well as later reconnects
            options["connect_args"] = {"connect_timeout": self.connect_timeout}
        options.update(self.engine_options)
        return options

    def _build_engine(self):
        return create_engine(self.database_url, **self.engine_kwargs())

    def start(self):
        if not self.database_url:
            raise RuntimeError("Set DATABASE_URL in .env")
        if self.engine is None:
            self.engine = self._build_engine()
            self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False,
                                             expire_on_commit=False, future=True)
        self.status = CONNECTING
        self.check_connection()

        self._scheduler = BackgroundScheduler()
        self._scheduler.add_job(self.check_connection, "interval", seconds=self.retry_interval,
                                id="db_connection_check", max_instances=1, coalesce=True)
        self._scheduler.start()
        logger.info("[DB] Connection supervisor started (every %ss)", self.retry_interval)

    def stop(self):
        self.status = DISCONNECTING
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        if self.engine is not None:
            self.engine.dispose()
        self.status = DISCONNECTED
        logger.info("[DB] Record store stopped")

    def check_connection(self) -> bool:
        """Ping the database once, creating the schema on first contact."""
        previous = self.status
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            if not self._schema_ready:
                Base.metadata.create_all(bind=self.engine)
                self._schema_ready = True
        except SQLAlchemyError as e:
            self.status = DISCONNECTED
            if previous == CONNECTED:
                logger.warning("[DB] Database disconnected: %s", e)
            else:
                logger.error("[DB] Connection error: %s", e)
            logger.info("[DB] Retrying connection in %s seconds...", self.retry_interval)
            return False

        self.status = CONNECTED
        if previous != CONNECTED:
            logger.info("[DB] Connected to %s/%s", self.host or "local", self.name or "")
        return True

    def create(self, document: Dict[str, Any]) -> Lamaran:
        """Insert one record in its own transaction and return it as stored."""
        if self.SessionLocal is None:
            raise StoreNotStarted("Record store has not been started")
        sess = self.SessionLocal()
        try:
            row = Lamaran(**document)
            sess.add(row)
            sess.commit()
            sess.refresh(row)
            return row
        except Exception:
            sess.rollback()
            raise
        finally:
            sess.close()

    def get(self, lamaran_id: str) -> Optional[Lamaran]:
        if self.SessionLocal is None:
            raise StoreNotStarted("Record store has not been started")
        sess = self.SessionLocal()
        try:
            return sess.execute(select(Lamaran).where(Lamaran.id == lamaran_id)).scalar_one_or_none()
        finally:
            sess.close()
