from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from core.exceptions import NotFoundError
from core.logging import get_logger
from data import queries
from data.models import Animal, HealthRecord, Vaccination, to_store_fields
from data.pagination import PageResult, paginate_list
from data.store import DocumentStore

logger = get_logger(__name__)

HEALTH_PAGE_SIZE = 10


class HealthRepository:
    """Health records and vaccinations. Both collections are small and read whole."""

    def __init__(self, store: DocumentStore, now: Callable[[], datetime] = datetime.now):
        self.store = store
        self._now = now

    def _animal(self, animal_id: str) -> Optional[Animal]:
        data = self.store.get(queries.ANIMALS, animal_id)
        return Animal.from_document(animal_id, data) if data is not None else None

    # --- health records ---------------------------------------------------

    def records(self) -> List[HealthRecord]:
        page = self.store.query(queries.q_health_records())
        return [HealthRecord.from_document(d.id, d.data) for d in page.docs]

    def records_for(self, animal_id: str) -> List[HealthRecord]:
        page = self.store.query(queries.q_related(queries.HEALTH_RECORDS, animal_id))
        rows = [HealthRecord.from_document(d.id, d.data) for d in page.docs]
        return sorted(rows, key=lambda r: r.date or datetime.min, reverse=True)

    def records_page(self, page: int = 1, per_page: int = HEALTH_PAGE_SIZE) -> PageResult[HealthRecord]:
        return paginate_list(self.records(), page, per_page)

    def add_record(self, record: HealthRecord) -> HealthRecord:
        animal = self._animal(record.animal_id)
        update: Dict[str, Any] = {"created_at": self._now()}
        if animal is not None:
            update["animal_name"] = record.animal_name or animal.display_name
            update["animal_type"] = record.animal_type or animal.type
        record = record.model_copy(update=update)
        record_id = self.store.add(queries.HEALTH_RECORDS, record.to_document())
        logger.info("health_record_add", doc_id=record_id, animal_id=record.animal_id, condition=record.condition)
        return record.model_copy(update={"id": record_id})

    def batch_add_records(self, animal_ids: List[str], template: HealthRecord) -> List[HealthRecord]:
        """One record per selected animal, all sharing the template's condition, treatment and cost."""
        added = [self.add_record(template.model_copy(update={"animal_id": a, "animal_name": "", "animal_type": ""}))
                 for a in animal_ids]
        logger.info("health_record_batch", count=len(added))
        return added

    def update_record(self, record_id: str, changes: Dict[str, Any]) -> HealthRecord:
        if self.store.get(queries.HEALTH_RECORDS, record_id) is None:
            raise NotFoundError("Health record", record_id, collection=queries.HEALTH_RECORDS)
        fields = to_store_fields({k: v for k, v in changes.items() if k not in ("id", "created_at")})
        if fields:
            self.store.update(queries.HEALTH_RECORDS, record_id, fields)
        logger.info("health_record_update", doc_id=record_id, fields=sorted(fields))
        return HealthRecord.from_document(record_id, self.store.get(queries.HEALTH_RECORDS, record_id))

    def delete_record(self, record_id: str) -> str:
        if self.store.get(queries.HEALTH_RECORDS, record_id) is None:
            raise NotFoundError("Health record", record_id, collection=queries.HEALTH_RECORDS)
        self.store.delete(queries.HEALTH_RECORDS, record_id)
        logger.info("health_record_deleted", doc_id=record_id)
        return record_id

    # --- vaccinations -----------------------------------------------------

    def vaccinations(self) -> List[Vaccination]:
        page = self.store.query(queries.q_vaccinations())
        return [Vaccination.from_document(d.id, d.data) for d in page.docs]

    def vaccinations_page(self, page: int = 1, per_page: int = HEALTH_PAGE_SIZE) -> PageResult[Vaccination]:
        return paginate_list(self.vaccinations(), page, per_page)

    def add_vaccination(self, vaccination: Vaccination) -> Vaccination:
        animal = self._animal(vaccination.animal_id)
        update: Dict[str, Any] = {"created_at": self._now()}
        if animal is not None and not vaccination.animal_name:
            update["animal_name"] = animal.display_name
        vaccination = vaccination.model_copy(update=update)
        vaccination_id = self.store.add(queries.VACCINATIONS, vaccination.to_document())
        if vaccination.administered and animal is not None and not animal.is_vaccinated:
            self.store.update(queries.ANIMALS, animal.id, {"isVaccinated": True})
        logger.info("vaccination_add", doc_id=vaccination_id, animal_id=vaccination.animal_id,
                    vaccine=vaccination.vaccine_name)
        return vaccination.model_copy(update={"id": vaccination_id})

    def batch_add_vaccinations(self, animal_ids: List[str], template: Vaccination) -> List[Vaccination]:
        added = [self.add_vaccination(template.model_copy(update={"animal_id": a, "animal_name": ""}))
                 for a in animal_ids]
        logger.info("vaccination_batch", count=len(added))
        return added

    def update_vaccination(self, vaccination_id: str, changes: Dict[str, Any]) -> Vaccination:
        if self.store.get(queries.VACCINATIONS, vaccination_id) is None:
            raise NotFoundError("Vaccination", vaccination_id, collection=queries.VACCINATIONS)
        fields = to_store_fields({k: v for k, v in changes.items() if k not in ("id", "created_at")})
        if fields:
            self.store.update(queries.VACCINATIONS, vaccination_id, fields)
        logger.info("vaccination_update", doc_id=vaccination_id, fields=sorted(fields))
        return Vaccination.from_document(vaccination_id, self.store.get(queries.VACCINATIONS, vaccination_id))

    def delete_vaccination(self, vaccination_id: str) -> str:
        if self.store.get(queries.VACCINATIONS, vaccination_id) is None:
            raise NotFoundError("Vaccination", vaccination_id, collection=queries.VACCINATIONS)
        self.store.delete(queries.VACCINATIONS, vaccination_id)
        logger.info("vaccination_deleted", doc_id=vaccination_id)
        return vaccination_id

    def due_vaccinations(self, on: datetime, within_days: int = 30) -> List[Vaccination]:
        """Vaccinations whose next dose falls due within `within_days` of `on` (overdue included)."""
        horizon = on.toordinal() + within_days
        due = [v for v in self.vaccinations() if v.next_due_date and v.next_due_date.toordinal() <= horizon]
        return sorted(due, key=lambda v: v.next_due_date)
