from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from functools import lru_cache
from typing import Optional
import logging
import uuid

from propreports.core.config import settings
from propreports.core.security import decode_access_token, landlord_id_from_claims
from propreports.database import get_db
from propreports.services.record_source import (
    LandlordScope,
    RecordSource,
    SqlRecordSource,
    SupabaseRecordSource,
)
from propreports.services.report_service import ReportService

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_landlord_scope(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    property_id: Optional[uuid.UUID] = Query(None, description="Restrict the report to one property"),
) -> LandlordScope:
    """
    Resolve the landlord scope once per request from the bearer token.
    Returns 401 if the token is missing, invalid or carries no landlord id.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    claims = decode_access_token(credentials.credentials)
    if not claims:
        raise credentials_exception

    landlord_id = landlord_id_from_claims(claims)
    if landlord_id is None:
        raise credentials_exception

    return LandlordScope(landlord_id=landlord_id, property_id=property_id)


@lru_cache()
def get_supabase_client():
    from supabase import create_client

    client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    logger.info("Supabase client initialized successfully")
    return client


def get_record_source(
    scope: LandlordScope = Depends(get_landlord_scope),
    db: Session = Depends(get_db),
) -> RecordSource:
    if settings.supabase_enabled:
        return SupabaseRecordSource(get_supabase_client(), scope)
    return SqlRecordSource(db, scope)


def get_report_service(source: RecordSource = Depends(get_record_source)) -> ReportService:
    return ReportService(source)
