from datetime import datetime

from researchx.extensions import db


class TransferLedgerEntry(db.Model):
    """
    Local record of a settlement transfer.

    The unique idempotency key guarantees at most one transfer per
    verified provider reference.
    """

    __tablename__ = "transfer_ledger"

    id = db.Column(db.Integer, primary_key=True)
    idempotency_key = db.Column(db.String(64), unique=True, nullable=False)
    project_id = db.Column(db.String(128), db.ForeignKey("projects.id"), nullable=False, index=True)
    provider_reference = db.Column(db.String(128), nullable=False, unique=True)
    recipient_code = db.Column(db.String(64), nullable=False)
    amount = db.Column(db.Integer, nullable=False)
    currency = db.Column(db.String(10), default="NGN")
    status = db.Column(db.String(20), nullable=False, default="pending")
    transfer_code = db.Column(db.String(64))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    completed_at = db.Column(db.DateTime)
