from datetime import datetime

from researchx.extensions import db


def _isoformat(value):
    return value.isoformat() if value else None


def _number(value):
    return float(value) if value is not None else None


class Project(db.Model):
    """A unit of research work being paid for, keyed by an opaque string id."""

    __tablename__ = "projects"

    id = db.Column(db.String(128), primary_key=True)
    title = db.Column(db.String(255))
    price = db.Column(db.Numeric(12, 2))
    author_id = db.Column(db.String(128))
    author_email = db.Column(db.String(255))
    status = db.Column(db.String(30), default="pending")

    payment_status = db.Column(db.String(20))
    payment_reference = db.Column(db.String(128), index=True)
    authorization_url = db.Column(db.String(512))
    transaction_fee = db.Column(db.Numeric(12, 2))
    total_amount = db.Column(db.Numeric(12, 2))
    bank_account = db.Column(db.String(20))

    settlement_state = db.Column(db.String(30), index=True)
    recipient_code = db.Column(db.String(64))
    transfer_reference = db.Column(db.String(64))
    transaction_reference = db.Column(db.String(128))
    verified_amount = db.Column(db.Integer)
    payment_details = db.Column(db.JSON)

    approved_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "price": _number(self.price),
            "authorId": self.author_id,
            "authorEmail": self.author_email,
            "status": self.status,
            "paymentStatus": self.payment_status,
            "paymentReference": self.payment_reference,
            "authorizationUrl": self.authorization_url,
            "transactionFee": _number(self.transaction_fee),
            "totalAmount": _number(self.total_amount),
            "bankAccount": self.bank_account,
            "settlementState": self.settlement_state,
            "transactionReference": self.transaction_reference,
            "paymentDetails": self.payment_details,
            "approvedAt": _isoformat(self.approved_at),
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<Project {self.id} payment={self.payment_status} settlement={self.settlement_state}>"
