from __future__ import annotations

from ..extensions import db
from retail_pos.time_utils import to_utc_z


class Record(db.Model):
    """
    One JSON document in the path-addressed record store.

    A record path is "<collection>/<key>"; collection may itself contain
    slashes ("settings/users/<uid>" lives in collection "settings/users").

    version_id is the optimistic-concurrency token. SQLAlchemy bumps it on
    every UPDATE and raises StaleDataError if the row changed underneath the
    session; RecordStore.update additionally checks an explicit expected
    version before writing.
    """
    __tablename__ = "records"
    __table_args__ = (
        db.UniqueConstraint("collection", "key", name="uq_records_collection_key"),
        db.Index("ix_records_collection_created", "collection", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    collection = db.Column(db.String(255), nullable=False, index=True)
    key = db.Column(db.String(128), nullable=False)

    data = db.Column(db.JSON, nullable=False, default=dict)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def path(self) -> str:
        return f"{self.collection}/{self.key}"

    def __repr__(self) -> str:
        return f"<Record path={self.path!r} version={self.version_id}>"

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "data": self.data,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
