import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from storefront.config import settings
from storefront.database import get_session
from storefront.services.payment_gateway import provider_configured

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/check")
def health_check(session: Session = Depends(get_session)):
    try:
        session.connection().execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        logger.exception("Database ping failed")
        database = "failed"

    return {
        "status": "ok" if database == "ok" else "degraded",
        "database": database,
        "paymentProvider": settings.payment_provider,
        "paymentConfigured": provider_configured(settings.payment_provider),
        "timestamp": datetime.utcnow().isoformat(),
    }
