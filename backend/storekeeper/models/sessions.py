from __future__ import annotations

from ..extensions import db
from ..money import to_str
from ..time_utils import to_utc_z


class AccountSession(db.Model):
    """
    Merchandise accounting period.

    There is no closed flag: the session with the latest opened_at (ties by id)
    is the open one, every other session is closed.
    """
    __tablename__ = "account_sessions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    opened_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "opened_at": to_utc_z(self.opened_at),
        }


class KitchenSession(db.Model):
    """Kitchen accounting period; same rules as AccountSession."""
    __tablename__ = "kitchen_sessions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    opened_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "opened_at": to_utc_z(self.opened_at),
        }


class Report(db.Model):
    """
    Point-in-time rollup of a closed merchandise session.

    Written once at closure (or entered manually with no session) and never
    recomputed. One report per session at most.
    """
    __tablename__ = "reports"
    __table_args__ = (
        db.UniqueConstraint("session_id", name="uq_reports_session"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey("account_sessions.id"), nullable=True)
    total_revenue = db.Column(db.Numeric(12, 2), nullable=False)
    total_sales = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    date = db.Column(db.Date, nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "total_revenue": to_str(self.total_revenue),
            "total_sales": self.total_sales,
            "notes": self.notes,
            "date": self.date.isoformat() if self.date else None,
            "created_at": to_utc_z(self.created_at),
        }


class KitchenReport(db.Model):
    """Point-in-time rollup of a closed kitchen session."""
    __tablename__ = "kitchen_reports"
    __table_args__ = (
        db.UniqueConstraint("session_id", name="uq_kitchen_reports_session"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey("kitchen_sessions.id"), nullable=True)
    total_revenue = db.Column(db.Numeric(12, 2), nullable=False)
    total_sales = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    date = db.Column(db.Date, nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "total_revenue": to_str(self.total_revenue),
            "total_sales": self.total_sales,
            "notes": self.notes,
            "date": self.date.isoformat() if self.date else None,
            "created_at": to_utc_z(self.created_at),
        }
