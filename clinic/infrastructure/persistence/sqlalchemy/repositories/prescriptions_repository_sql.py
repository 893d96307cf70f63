from datetime import date
from typing import Dict, Iterable, List, Optional
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....database import transaction
from .....db.models import Medication, Prescription
from .....exceptions import ConflictError
from .....application.ports.prescriptions_repo import MedicationDto, PrescriptionDto, PrescriptionsRepository


class SqlPrescriptionsRepository(PrescriptionsRepository):
    def __init__(self, session: Session):
        self.session = session

    def transaction(self):
        return transaction(self.session)

    def _to_dto(self, p: Prescription, meds: List[Medication]) -> PrescriptionDto:
        return PrescriptionDto(
            id=p.id,
            appointment_id=p.appointment_id,
            diagnosis=p.diagnosis,
            notes=p.notes,
            follow_up_date=p.follow_up_date,
            attachment_url=p.attachment_url,
            created_at=p.created_at,
            medications=[
                MedicationDto(
                    id=m.id,
                    medicine_name=m.medicine_name,
                    dosage=m.dosage,
                    frequency=m.frequency,
                    duration=m.duration,
                    instructions=m.instructions,
                )
                for m in meds
            ],
        )

    def _medications_for(self, prescription_ids: List[str]) -> Dict[str, List[Medication]]:
        grouped: Dict[str, List[Medication]] = {pid: [] for pid in prescription_ids}
        if not prescription_ids:
            return grouped
        rows = self.session.exec(
            select(Medication).where(Medication.prescription_id.in_(prescription_ids))
        ).all()
        for m in rows:
            grouped[m.prescription_id].append(m)
        return grouped

    def get_for_appointment(self, appointment_id: str) -> Optional[PrescriptionDto]:
        p = self.session.exec(
            select(Prescription).where(Prescription.appointment_id == appointment_id)
        ).first()
        if not p:
            return None
        return self._to_dto(p, self._medications_for([p.id])[p.id])

    def list_for_appointments(self, appointment_ids: Iterable[str]) -> List[PrescriptionDto]:
        ids = list(appointment_ids)
        if not ids:
            return []
        rows = self.session.exec(
            select(Prescription)
            .where(Prescription.appointment_id.in_(ids))
            .order_by(Prescription.created_at.desc())
        ).all()
        meds = self._medications_for([p.id for p in rows])
        return [self._to_dto(p, meds[p.id]) for p in rows]

    def create(self, appointment_id: str, diagnosis: str, notes: Optional[str], follow_up_date: Optional[date],
               attachment_url: Optional[str], medications: List[MedicationDto]) -> PrescriptionDto:
        p = Prescription(
            appointment_id=appointment_id,
            diagnosis=diagnosis,
            notes=notes,
            follow_up_date=follow_up_date,
            attachment_url=attachment_url,
        )
        self.session.add(p)
        try:
            self.session.flush()
        except IntegrityError:
            raise ConflictError("A prescription already exists for this appointment")

        rows = []
        for med in medications:
            m = Medication(
                prescription_id=p.id,
                medicine_name=med.medicine_name,
                dosage=med.dosage,
                frequency=med.frequency,
                duration=med.duration,
                instructions=med.instructions,
            )
            self.session.add(m)
            rows.append(m)
        self.session.flush()
        return self._to_dto(p, rows)
