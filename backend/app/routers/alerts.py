"""
Alerts Router — Thin Controller (SRP / DIP)
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.schemas.alert import (
    AlertSummary,
    AlertEvaluationRequest,
    AlertMessageResponse,
    DigestRequest,
)
from app.services.alert_service import AlertService

router = APIRouter(tags=["Inventory Alerts"])


def get_alert_service(db: Session = Depends(get_db)) -> AlertService:
    return AlertService(db)


@router.post("/alerts/evaluate", response_model=AlertSummary)
def evaluate_alerts(
    payload: AlertEvaluationRequest,
    service: AlertService = Depends(get_alert_service),
):
    return service.evaluate_snapshot(payload)


@router.post("/alerts/digest", response_model=AlertMessageResponse)
def build_alert_digest(
    payload: DigestRequest,
    service: AlertService = Depends(get_alert_service),
):
    return service.build_digest(payload)


@router.get("/pharmacies/{pharmacy_id}/alerts", response_model=AlertSummary)
def pharmacy_alerts(
    pharmacy_id: int,
    branch_id: Optional[int] = None,
    service: AlertService = Depends(get_alert_service),
):
    return service.get_alert_summary(pharmacy_id, branch_id=branch_id)


@router.get("/pharmacies/{pharmacy_id}/alerts/digest", response_model=AlertMessageResponse)
def pharmacy_alert_digest(
    pharmacy_id: int,
    branch_id: Optional[int] = None,
    phone: Optional[str] = Query(None, max_length=32),
    max_items_per_section: Optional[int] = Query(None, ge=1, le=500),
    service: AlertService = Depends(get_alert_service),
):
    return service.get_digest(
        pharmacy_id,
        branch_id=branch_id,
        phone=phone,
        max_items_per_section=max_items_per_section,
    )


@router.get("/pharmacies/{pharmacy_id}/alerts/{alert_id}/whatsapp", response_model=AlertMessageResponse)
def pharmacy_alert_whatsapp_link(
    pharmacy_id: int,
    alert_id: str,
    branch_id: Optional[int] = None,
    phone: Optional[str] = Query(None, max_length=32),
    service: AlertService = Depends(get_alert_service),
):
    return service.get_alert_whatsapp_link(
        pharmacy_id, alert_id, branch_id=branch_id, phone=phone,
    )
