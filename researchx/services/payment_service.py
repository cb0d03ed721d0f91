"""
Payment initiation and settlement.

Settlement runs as a persisted saga on the project record:

    pending -> verified -> recipient_created -> transferred -> completed

Every step commits its outcome before the next external call, so an
interrupted settlement is resumed from the last committed step instead of
repeating side effects. A provider failure mid-chain leaves the state where
it was; only a payment the provider reports as unsuccessful becomes failed.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from researchx.billing.locks import settlement_lock
from researchx.billing.state_machine import (
    RESUMABLE_STATES,
    PaymentStatus,
    SettlementState,
    SettlementStateMachine,
    current_state,
)
from researchx.domain.billing import (
    from_minor_units,
    payment_reference,
    quote_fees,
    to_minor_units,
    transfer_amount,
    transfer_idempotency_key,
)
from researchx.errors import AppError, ConflictError, ProviderError, ValidationError
from researchx.models import TransferLedgerEntry
from researchx.services.project_store import ProjectStore

logger = logging.getLogger(__name__)


class PaymentNotSuccessful(AppError):
    status_code = 400


class PaymentMismatch(ConflictError):
    pass


class PaymentService:

    def __init__(self, settings, paystack, store=None, lock=settlement_lock):
        self.settings = settings
        self.paystack = paystack
        self.store = store or ProjectStore()
        self.lock = lock

    # Initiation

    def initiate(self, project_id, force=False):
        """
        Start a hosted payment for ``project_id`` and return the redirect URL.

        A payment already in flight is reported as a conflict unless
        ``force`` is set, in which case its reference is replaced.
        """
        if not project_id or not isinstance(project_id, str):
            raise ValidationError("Invalid project ID")

        project = self.store.require(project_id)

        if project.price is None or project.price <= 0:
            raise ValidationError("Invalid project price")

        self._guard_reinitiation(project, force)

        quote = quote_fees(project.price, self.settings.fee_rate)
        reference = payment_reference(project_id)
        account = self.settings.settlement

        transaction = self.paystack.initialize_transaction(
            email=project.author_email or self.settings.fallback_email,
            amount=quote.total_minor_units,
            reference=reference,
            callback_url=f"{self.settings.base_url}/payment/verify/{project_id}",
            metadata={
                "projectId": project_id,
                "authorId": project.author_id,
                "accessBankAccount": account.account_number,
                "transactionFee": float(quote.fee),
                "custom_fields": [
                    {
                        "display_name": "Project Title",
                        "variable_name": "project_title",
                        "value": project.title,
                    },
                    {
                        "display_name": "Bank Account",
                        "variable_name": "bank_account",
                        "value": account.account_number,
                    },
                ],
            },
        )

        SettlementStateMachine.start(project)
        self.store.update(
            project,
            payment_reference=transaction.get("reference") or reference,
            payment_status=PaymentStatus.INITIATED.value,
            authorization_url=transaction.get("authorization_url"),
            transaction_fee=quote.fee,
            total_amount=quote.total,
            bank_account=account.account_number,
            recipient_code=None,
            transfer_reference=None,
            transaction_reference=None,
            verified_amount=None,
            payment_details=None,
        )

        logger.info(
            "Payment initiated",
            extra={"project_id": project_id, "reference": project.payment_reference},
        )

        return {
            "success": True,
            "authorizationUrl": project.authorization_url,
            "reference": project.payment_reference,
            "bankAccount": account.account_number,
            "accountName": account.account_name,
            "bankName": account.bank_name,
            "amount": float(quote.total),
            "transactionFee": float(quote.fee),
        }

    def _guard_reinitiation(self, project, force):
        state = current_state(project)

        if project.payment_status == PaymentStatus.COMPLETED.value or state == SettlementState.COMPLETED:
            raise ConflictError(
                "Project already paid",
                payload={"paymentReference": project.payment_reference},
            )

        if state in RESUMABLE_STATES:
            raise ConflictError(
                "Payment settlement already in progress",
                payload={"paymentReference": project.transaction_reference},
            )

        if project.payment_status == PaymentStatus.INITIATED.value and project.payment_reference:
            if not force:
                raise ConflictError(
                    "Payment already initiated",
                    payload={
                        "paymentReference": project.payment_reference,
                        "authorizationUrl": project.authorization_url,
                    },
                )
            logger.warning(
                f"Replacing in-flight payment reference {project.payment_reference} for project {project.id}"
            )

    # Verification and settlement

    def verify(self, project_id, reference):
        """
        Verify ``reference`` with the provider and settle the project.

        Calling this again for a project whose settlement was interrupted
        resumes it; calling it for a completed project returns the stored
        outcome.
        """
        if not reference or not project_id:
            raise ValidationError("Missing reference or project ID")

        with self.lock(project_id):
            project = self.store.require(project_id, for_update=True)
            state = current_state(project)

            if state == SettlementState.COMPLETED:
                return self._completed_response(project)

            if state in RESUMABLE_STATES:
                if project.transaction_reference != reference:
                    raise ConflictError(
                        "Another payment reference is already being settled for this project"
                    )
                logger.info(f"Resuming settlement of project {project_id} from {state.value}")
            else:
                self._verify_transaction(project, reference)

            return self._settle(project)

    def resume(self, project_id):
        """Continue an interrupted settlement. Returns None if there is nothing to resume."""
        with self.lock(project_id):
            project = self.store.require(project_id, for_update=True)
            if current_state(project) not in RESUMABLE_STATES:
                return None
            return self._settle(project)

    def pending_settlements(self):
        return self.store.by_settlement_state(RESUMABLE_STATES)

    def _verify_transaction(self, project, reference):
        if project.payment_reference != reference:
            raise PaymentMismatch(
                "Payment reference does not belong to this project",
                payload={"paymentReference": project.payment_reference},
            )

        transaction = self.paystack.verify_transaction(reference)

        if transaction.get("status") == "success":
            self._check_transaction(project, reference, transaction)

        if current_state(project) != SettlementState.PENDING:
            SettlementStateMachine.start(project)

        if transaction.get("status") != "success":
            SettlementStateMachine.fail(project)
            self.store.update(project, payment_status=PaymentStatus.FAILED.value)
            logger.info(
                "Payment not successful",
                extra={"project_id": project.id, "provider_status": transaction.get("status")},
            )
            raise PaymentNotSuccessful("Payment not successful")

        amount = int(transaction.get("amount") or 0)
        authorization = transaction.get("authorization") or {}

        SettlementStateMachine.transition(project, SettlementState.VERIFIED)
        self.store.update(
            project,
            transaction_reference=reference,
            verified_amount=amount,
            payment_details={
                "amount": float(from_minor_units(amount)),
                "paidAt": transaction.get("paid_at"),
                "bank": authorization.get("bank"),
            },
        )

    def _check_transaction(self, project, reference, transaction):
        """A successful transaction must be this project's payment, paid in full."""
        if transaction.get("reference", reference) != reference:
            raise PaymentMismatch("Provider returned a different payment reference")

        metadata = transaction.get("metadata")
        if isinstance(metadata, dict) and metadata.get("projectId") not in (None, project.id):
            raise PaymentMismatch("Payment reference does not belong to this project")

        if project.total_amount is not None:
            due = to_minor_units(project.total_amount)
            paid = int(transaction.get("amount") or 0)
            if paid < due:
                logger.warning(
                    "Underpaid transaction",
                    extra={"project_id": project.id, "amount_due": due, "amount_paid": paid},
                )
                raise PaymentMismatch(
                    "Paid amount does not cover the project total",
                    payload={
                        "amountDue": float(from_minor_units(due)),
                        "amountPaid": float(from_minor_units(paid)),
                    },
                )

    def _settle(self, project):
        steps = {
            SettlementState.VERIFIED: self._create_recipient,
            SettlementState.RECIPIENT_CREATED: self._transfer,
            SettlementState.TRANSFERRED: self._complete,
        }
        while True:
            # Every step commits, which releases the row lock; take it back
            # and re-read the state before the next external call.
            self.store.lock(project)
            step = steps.get(current_state(project))
            if step is None:
                break
            step(project)

        if current_state(project) != SettlementState.COMPLETED:
            raise ConflictError(f"Settlement ended in state {project.settlement_state}")

        return self._completed_response(project)

    def _create_recipient(self, project):
        recipient = self.paystack.create_transfer_recipient(self.settings.settlement)
        recipient_code = recipient.get("recipient_code")
        if not recipient_code:
            raise ProviderError(
                "Transfer recipient was not created",
                provider=self.paystack.name,
                response_data=recipient,
            )

        SettlementStateMachine.transition(project, SettlementState.RECIPIENT_CREATED)
        self.store.update(project, recipient_code=recipient_code)

    def _transfer(self, project):
        key = transfer_idempotency_key(project.id, project.transaction_reference)
        amount = transfer_amount(project.verified_amount or 0, self.settings.transfer_deduction_rate)
        entry = self._ledger_entry(project, key, amount)
        if current_state(project) != SettlementState.RECIPIENT_CREATED:
            return

        if entry.status != "transferred":
            transfer = self.paystack.initiate_transfer(
                amount=amount,
                recipient=project.recipient_code,
                reason=f"Payment for project {project.id}",
                reference=key,
            )
            entry.status = "transferred"
            entry.transfer_code = transfer.get("transfer_code")
            entry.completed_at = datetime.utcnow()

        SettlementStateMachine.transition(project, SettlementState.TRANSFERRED)
        self.store.update(project, transfer_reference=key)

    def _ledger_entry(self, project, key, amount):
        session = self.store.session
        entry = self._find_ledger_entry(project.transaction_reference)
        if entry is None:
            entry = TransferLedgerEntry(
                idempotency_key=key,
                project_id=project.id,
                provider_reference=project.transaction_reference,
                recipient_code=project.recipient_code,
                amount=amount,
                currency=self.settings.settlement.currency,
                status="pending",
            )
            session.add(entry)
            # Recorded before the transfer call is made
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                self.store.lock(project)
                entry = self._find_ledger_entry(project.transaction_reference)

        if entry is None or entry.idempotency_key != key:
            raise PaymentMismatch("Payment reference was already settled for another project")
        return entry

    def _find_ledger_entry(self, provider_reference):
        return (
            self.store.session.query(TransferLedgerEntry)
            .filter_by(provider_reference=provider_reference)
            .first()
        )

    def _complete(self, project):
        details = dict(project.payment_details or {})
        details["transferTo"] = self.settings.settlement.account_number

        SettlementStateMachine.transition(project, SettlementState.COMPLETED)
        self.store.update(
            project,
            payment_status=PaymentStatus.COMPLETED.value,
            status="approved",
            approved_at=datetime.utcnow(),
            payment_details=details,
        )
        logger.info(
            "Settlement completed",
            extra={"project_id": project.id, "transfer_reference": project.transfer_reference},
        )

    def _completed_response(self, project):
        account = self.settings.settlement
        return {
            "success": True,
            "message": f"Payment verified and funds transferred to {account.bank_name}",
            "bankAccount": account.account_number,
            "amount": float(from_minor_units(project.verified_amount or 0)),
        }
