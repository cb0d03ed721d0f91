from .project import Project
from .transfer import TransferLedgerEntry

__all__ = ["Project", "TransferLedgerEntry"]
