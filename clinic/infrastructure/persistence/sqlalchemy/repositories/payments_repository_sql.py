from datetime import datetime
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import Payment
from .....exceptions import ConflictError, NotFoundError
from .....application.ports.prescriptions_repo import PaymentDto, PaymentsRepository


class SqlPaymentsRepository(PaymentsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, p: Payment) -> PaymentDto:
        return PaymentDto(
            id=p.id,
            appointment_id=p.appointment_id,
            amount=p.amount,
            method=p.method,
            status=p.status,
            paid_at=p.paid_at,
            notes=p.notes,
            created_at=p.created_at,
        )

    def _row(self, appointment_id: str) -> Optional[Payment]:
        return self.session.exec(select(Payment).where(Payment.appointment_id == appointment_id)).first()

    def get_for_appointment(self, appointment_id: str) -> Optional[PaymentDto]:
        p = self._row(appointment_id)
        return self._to_dto(p) if p else None

    def create(self, appointment_id: str, amount: float, method: str, notes: Optional[str]) -> PaymentDto:
        p = Payment(appointment_id=appointment_id, amount=amount, method=method, status="PENDING", notes=notes)
        self.session.add(p)
        try:
            self.session.flush()
        except IntegrityError:
            raise ConflictError("A payment already exists for this appointment")
        return self._to_dto(p)

    def update(self, appointment_id: str, amount: float, method: str, status: str,
               paid_at: Optional[datetime], notes: Optional[str]) -> PaymentDto:
        p = self._row(appointment_id)
        if not p:
            raise NotFoundError("No payment record for this appointment")
        p.amount = amount
        p.method = method
        p.status = status
        p.paid_at = paid_at
        p.notes = notes
        self.session.add(p)
        self.session.flush()
        return self._to_dto(p)
