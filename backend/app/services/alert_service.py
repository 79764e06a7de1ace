"""
Alert Service — Service Layer (SRP / DIP)

Loads an inventory snapshot for a pharmacy or one of its branches, runs the
alert engine over it and hands the results to the message formatters.
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple
from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import EntityNotFoundException, to_http_exception
from app.models.branch import Branch
from app.models.pharmacy import Pharmacy
from app.repositories.medication_repository import MedicationRepository
from app.repositories.pharmacy_repository import PharmacyRepository, BranchRepository
from app.schemas.alert import (
    Alert,
    AlertSummary,
    AlertEvaluationRequest,
    AlertMessageResponse,
    DigestRequest,
)
from app.services import alert_messages
from app.services.alert_engine import (
    BRANCH_SCOPE,
    PHARMACY_SCOPE,
    count_alerts,
    generate_alerts,
    resolve_scope,
)

logger = logging.getLogger(__name__)


class AlertService:

    def __init__(self, db: Session, clock: Callable[[], datetime] = datetime.now):
        self._pharmacy_repo = PharmacyRepository(db)
        self._branch_repo = BranchRepository(db)
        self._medication_repo = MedicationRepository(db)
        self._clock = clock

    # ── Lookups ───────────────────────────────────────────────────────────────

    def _get_pharmacy(self, pharmacy_id: int) -> Pharmacy:
        pharmacy = self._pharmacy_repo.get_by_id(pharmacy_id)
        if not pharmacy:
            raise to_http_exception(EntityNotFoundException("Pharmacy", pharmacy_id))
        return pharmacy

    def _get_branch(self, pharmacy_id: int, branch_id: int) -> Branch:
        branch = self._branch_repo.get_by_id(branch_id)
        if not branch or branch.pharmacy_id != pharmacy_id:
            raise to_http_exception(EntityNotFoundException("Branch", branch_id))
        return branch

    def _resolve_phone(self, pharmacy: Pharmacy, phone: Optional[str]) -> str:
        return (
            phone
            or pharmacy.alert_recipient_phone
            or pharmacy.phone
            or settings.DEFAULT_ALERT_PHONE
            or ""
        )

    def _evaluate(
        self, pharmacy_id: int, branch_id: Optional[int], now: datetime,
    ) -> Tuple[Pharmacy, Optional[Branch], List[Alert]]:
        pharmacy = self._get_pharmacy(pharmacy_id)
        if branch_id is None:
            branch = None
            items = self._medication_repo.list_inventory_items(pharmacy_id)
            scope = PHARMACY_SCOPE
        else:
            branch = self._get_branch(pharmacy_id, branch_id)
            items = self._medication_repo.list_branch_inventory_items(branch)
            scope = BRANCH_SCOPE

        alerts = generate_alerts(
            items, now, scope=scope, gate_expiry_on_stock=settings.ALERT_GATE_EXPIRY_ON_STOCK,
        )
        counts = count_alerts(alerts)
        logger.info(
            "alerts_evaluated",
            extra={
                "pharmacy_id": pharmacy_id,
                "branch_id": branch_id,
                "scope": scope.name,
                "items": len(items),
                "alerts": counts.total,
                "high_priority": counts.high,
                "expiry_alerts": counts.expiry,
                "stock_alerts": counts.low_stock,
            },
        )
        return pharmacy, branch, alerts

    # ── Persisted inventory ───────────────────────────────────────────────────

    def get_alert_summary(self, pharmacy_id: int, branch_id: Optional[int] = None) -> AlertSummary:
        now = self._clock()
        _, _, alerts = self._evaluate(pharmacy_id, branch_id, now)
        return AlertSummary(
            scope="branch" if branch_id is not None else "pharmacy",
            pharmacy_id=str(pharmacy_id),
            branch_id=str(branch_id) if branch_id is not None else None,
            generated_at=now,
            alerts=alerts,
            counts=count_alerts(alerts),
        )

    def get_alert_whatsapp_link(
        self,
        pharmacy_id: int,
        alert_id: str,
        branch_id: Optional[int] = None,
        phone: Optional[str] = None,
    ) -> AlertMessageResponse:
        pharmacy, _, alerts = self._evaluate(pharmacy_id, branch_id, self._clock())
        alert = next((a for a in alerts if a.id == alert_id), None)
        if alert is None:
            raise to_http_exception(EntityNotFoundException("Alert", alert_id))

        destination = self._resolve_phone(pharmacy, phone)
        return AlertMessageResponse(
            message=alert_messages.format_single_alert_message(alert),
            whatsapp_url=alert_messages.single_alert_whatsapp_url(alert, destination),
            phone=alert_messages.normalize_phone(destination),
        )

    def get_digest(
        self,
        pharmacy_id: int,
        branch_id: Optional[int] = None,
        phone: Optional[str] = None,
        max_items_per_section: Optional[int] = None,
    ) -> AlertMessageResponse:
        now = self._clock()
        pharmacy, branch, alerts = self._evaluate(pharmacy_id, branch_id, now)
        heading = pharmacy.name if branch is None else f"{pharmacy.name} ({branch.name})"
        limit = max_items_per_section or settings.digest_item_limit

        message = alert_messages.format_digest_message(
            alerts, now=now, pharmacy_name=heading, max_items_per_section=limit,
        )
        destination = self._resolve_phone(pharmacy, phone)
        return AlertMessageResponse(
            message=message,
            whatsapp_url=alert_messages.build_whatsapp_url(message, destination),
            phone=alert_messages.normalize_phone(destination),
            alert_count=len(alerts),
        )

    # ── Caller-supplied snapshots (no database) ───────────────────────────────

    def evaluate_snapshot(self, payload: AlertEvaluationRequest) -> AlertSummary:
        now = payload.now or self._clock()
        gate = payload.gate_expiry_on_stock
        if gate is None:
            gate = settings.ALERT_GATE_EXPIRY_ON_STOCK

        alerts = generate_alerts(
            payload.items, now, scope=resolve_scope(payload.scope), gate_expiry_on_stock=gate,
        )
        return AlertSummary(
            scope=payload.scope,
            generated_at=now,
            alerts=alerts,
            counts=count_alerts(alerts),
        )

    def build_digest(self, payload: DigestRequest) -> AlertMessageResponse:
        message = alert_messages.format_digest_message(
            payload.alerts,
            now=payload.now or self._clock(),
            pharmacy_name=payload.pharmacy_name,
            max_items_per_section=payload.max_items_per_section,
        )
        return AlertMessageResponse(
            message=message,
            whatsapp_url=alert_messages.build_whatsapp_url(message, payload.phone),
            phone=alert_messages.normalize_phone(payload.phone),
            alert_count=len(payload.alerts),
        )
