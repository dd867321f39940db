"""SQLAlchemy ORM models for published nullifiers and accumulator roots."""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import Column, DateTime, Integer, LargeBinary, Text, create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from spendproof.utils.encoding import field_to_bytes

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PublishedNullifier(Base):
    """A nullifier revealed by an accepted spend."""
    __tablename__ = "published_nullifiers"

    id = Column(Integer, primary_key=True)
    nullifier = Column(LargeBinary(32), unique=True, nullable=False, index=True)
    merkle_root = Column(LargeBinary(32), nullable=False, index=True)
    proof_hex = Column(Text, nullable=True)
    published_at = Column(DateTime, default=_utcnow, index=True)

    def __repr__(self) -> str:
        return f"<PublishedNullifier({self.nullifier.hex()[:8]}...)>"


class AccumulatorRoot(Base):
    """Accumulator root snapshots."""
    __tablename__ = "accumulator_roots"

    id = Column(Integer, primary_key=True)
    root_hash = Column(LargeBinary(32), unique=True, nullable=False, index=True)
    tree_depth = Column(Integer, nullable=False)
    num_leaves = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=_utcnow, index=True)

    def __repr__(self) -> str:
        return f"<AccumulatorRoot({self.root_hash.hex()[:8]}... {self.num_leaves} leaves)>"


class DatabaseManager:
    """Manages SQLAlchemy database connections and sessions."""

    def __init__(self, database_url: str = "sqlite:///spendproof.db"):
        """
        Initialize database manager.

        Args:
            database_url: SQLAlchemy database URL
                         Default: SQLite in current directory
                         In-memory example: "sqlite:///:memory:"
        """
        self.database_url = database_url
        self.engine = create_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False} if "sqlite" in database_url else {}
        )
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_tables(self):
        """Create all tables in database."""
        Base.metadata.create_all(self.engine)

    def drop_tables(self):
        """Drop all tables (for testing)."""
        Base.metadata.drop_all(self.engine)

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.SessionLocal()

    # Nullifier operations
    def publish_nullifier(self, session: Session, nullifier: int, merkle_root: int,
                          proof_hex: Optional[str] = None) -> PublishedNullifier:
        """Record a nullifier as published."""
        record = PublishedNullifier(
            nullifier=field_to_bytes(nullifier),
            merkle_root=field_to_bytes(merkle_root),
            proof_hex=proof_hex,
        )
        session.add(record)
        session.commit()
        return record

    def is_nullifier_published(self, session: Session, nullifier: int) -> bool:
        """Check if nullifier has been published."""
        return session.query(PublishedNullifier).filter_by(nullifier=field_to_bytes(nullifier)).first() is not None

    def count_nullifiers(self, session: Session) -> int:
        return session.query(PublishedNullifier).count()

    def get_nullifiers_for_root(self, session: Session, merkle_root: int) -> List[PublishedNullifier]:
        """Get every nullifier published against a root."""
        return (
            session.query(PublishedNullifier)
            .filter_by(merkle_root=field_to_bytes(merkle_root))
            .order_by(PublishedNullifier.id)
            .all()
        )

    # Accumulator root operations
    def record_root(self, session: Session, root: int, tree_depth: int, num_leaves: int) -> AccumulatorRoot:
        """Add a root snapshot; recording the same root twice returns the existing row."""
        root_hash = field_to_bytes(root)
        existing = session.query(AccumulatorRoot).filter_by(root_hash=root_hash).first()
        if existing:
            return existing
        record = AccumulatorRoot(root_hash=root_hash, tree_depth=tree_depth, num_leaves=num_leaves)
        session.add(record)
        session.commit()
        return record

    def get_current_root(self, session: Session) -> Optional[AccumulatorRoot]:
        """Get most recent root."""
        return session.query(AccumulatorRoot).order_by(AccumulatorRoot.id.desc()).first()


# Default database manager instance
_db_manager: Optional[DatabaseManager] = None


def get_db_manager(database_url: str = "sqlite:///spendproof.db") -> DatabaseManager:
    """Get or create default database manager."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager(database_url)
        _db_manager.create_tables()
    return _db_manager


def reset_db_manager():
    """Reset database manager (for testing)."""
    global _db_manager
    _db_manager = None
