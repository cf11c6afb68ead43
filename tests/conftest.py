import uuid
from datetime import date, datetime

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from propreports.core.config import settings
from propreports.core.deps import get_record_source, get_report_service
from propreports.database import get_db
from propreports.db.base import Base
from propreports.main import app
from propreports.models import (
    InvoiceStatus,
    MaintenanceRequest,
    MaintenanceStatus,
    Payment,
    Property,
    RentInvoice,
    TenancyAgreement,
    Tenant,
    TenantStatus,
    Unit,
)
from propreports.services.generations import generation_registry
from propreports.services.record_source import LandlordScope, SqlRecordSource
from propreports.services.report_service import ReportService

TEST_DATABASE_URL = "sqlite://"

TODAY = date(2024, 6, 15)
LANDLORD_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
OTHER_LANDLORD_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")


@pytest.fixture()
def engine():
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def portfolio(db_session):
    """
    Two properties for LANDLORD_ID and one for another landlord.

    Acacia Court: A1 (Alice), A2 (Brian), A3 (vacant since Carol left 2024-04-30)
    Baobab House: B1 (Dan, two overdue invoices)
    Zebra Flats:  Z1 (other landlord, must never appear)
    """
    db = db_session
    acacia = Property(landlord_id=LANDLORD_ID, name="Acacia Court")
    baobab = Property(landlord_id=LANDLORD_ID, name="Baobab House")
    zebra = Property(landlord_id=OTHER_LANDLORD_ID, name="Zebra Flats")
    db.add_all([acacia, baobab, zebra])
    db.flush()

    a1 = Unit(property_id=acacia.id, unit_label="A1", monthly_rent_kes=10000)
    a2 = Unit(property_id=acacia.id, unit_label="A2", monthly_rent_kes=12000)
    a3 = Unit(property_id=acacia.id, unit_label="A3", monthly_rent_kes=8000)
    b1 = Unit(property_id=baobab.id, unit_label="B1", monthly_rent_kes=15000)
    z1 = Unit(property_id=zebra.id, unit_label="Z1", monthly_rent_kes=50000)
    db.add_all([a1, a2, a3, b1, z1])
    db.flush()

    alice = Tenant(full_name="Alice Wanjiku", current_unit_id=a1.id, status=TenantStatus.ACTIVE,
                   start_date=date(2024, 1, 1))
    brian = Tenant(full_name="Brian Otieno", current_unit_id=a2.id, status=TenantStatus.ACTIVE,
                   start_date=date(2024, 4, 1))
    carol = Tenant(full_name="Carol Achieng", current_unit_id=a3.id, status=TenantStatus.INACTIVE,
                   start_date=date(2023, 1, 1), end_date=date(2024, 4, 30))
    dan = Tenant(full_name="Dan Kamau", current_unit_id=b1.id, status=TenantStatus.ACTIVE,
                 start_date=date(2023, 6, 1))
    zed = Tenant(full_name="Zed Mwangi", current_unit_id=z1.id, status=TenantStatus.ACTIVE,
                 start_date=date(2024, 1, 1))
    db.add_all([alice, brian, carol, dan, zed])
    db.flush()

    db.add_all([
        TenancyAgreement(tenant_id=alice.id, unit_id=a1.id, start_date=date(2024, 1, 1), status="ACTIVE"),
        TenancyAgreement(tenant_id=brian.id, unit_id=a2.id, start_date=date(2024, 4, 1), status="ACTIVE"),
        TenancyAgreement(tenant_id=carol.id, unit_id=a3.id, start_date=date(2023, 1, 1),
                         end_date=date(2024, 4, 30), status="ENDED"),
        TenancyAgreement(tenant_id=dan.id, unit_id=b1.id, start_date=date(2023, 6, 1), status="ACTIVE"),
        TenancyAgreement(tenant_id=zed.id, unit_id=z1.id, start_date=date(2024, 5, 1), status="ACTIVE"),
    ])

    def invoice(unit, tenant, month, due, paid, status):
        return RentInvoice(
            unit_id=unit.id,
            tenant_id=tenant.id,
            period_start=date(2024, month, 1),
            period_end=date(2024, month, 28),
            due_date=date(2024, month, 5),
            amount_due_kes=due,
            amount_paid_kes=paid,
            status=status,
        )

    inv_a_apr = invoice(a1, alice, 4, 10000, 10000, InvoiceStatus.PAID)
    inv_a_may = invoice(a1, alice, 5, 10000, 10000, InvoiceStatus.PAID)
    inv_b_apr = invoice(a2, brian, 4, 12000, 12000, InvoiceStatus.PAID)
    inv_b_may = invoice(a2, brian, 5, 12000, 4000, InvoiceStatus.PARTIAL)
    inv_d_apr = invoice(b1, dan, 4, 15000, 0, InvoiceStatus.OVERDUE)
    inv_d_may = invoice(b1, dan, 5, 15000, 0, InvoiceStatus.OVERDUE)
    inv_z_apr = invoice(z1, zed, 4, 50000, 0, InvoiceStatus.OVERDUE)
    db.add_all([inv_a_apr, inv_a_may, inv_b_apr, inv_b_may, inv_d_apr, inv_d_may, inv_z_apr])
    db.flush()

    db.add_all([
        Payment(tenant_id=alice.id, invoice_id=inv_a_apr.id, amount_kes=10000,
                payment_date=date(2024, 4, 3), tx_ref="QAB1"),
        Payment(tenant_id=alice.id, invoice_id=inv_a_may.id, amount_kes=10000,
                payment_date=date(2024, 5, 10), tx_ref="QAB2"),
        Payment(tenant_id=brian.id, invoice_id=inv_b_apr.id, amount_kes=12000,
                payment_date=date(2024, 4, 5), tx_ref="QAB3"),
        Payment(tenant_id=brian.id, invoice_id=inv_b_may.id, amount_kes=4000,
                payment_date=date(2024, 5, 20), tx_ref="QAB4"),
        Payment(tenant_id=dan.id, amount_kes=5000, payment_date=date(2024, 2, 15)),
        Payment(tenant_id=zed.id, amount_kes=99999, payment_date=date(2024, 4, 10)),
    ])

    db.add_all([
        MaintenanceRequest(property_id=acacia.id, unit_id=a1.id, title="Leaking tap",
                           status=MaintenanceStatus.PENDING, cost_kes=0,
                           created_at=datetime(2024, 5, 1, 9, 0)),
        MaintenanceRequest(property_id=acacia.id, unit_id=a2.id, title="Broken window",
                           status=MaintenanceStatus.COMPLETED, cost_kes=2500,
                           created_at=datetime(2024, 4, 1, 8, 0),
                           completed_at=datetime(2024, 4, 4, 10, 0)),
        MaintenanceRequest(property_id=acacia.id, unit_id=a2.id, title="Faulty socket",
                           status=MaintenanceStatus.IN_PROGRESS, cost_kes=1000,
                           created_at=datetime(2024, 6, 1, 12, 0)),
        MaintenanceRequest(property_id=zebra.id, title="Roof", status=MaintenanceStatus.PENDING,
                           cost_kes=90000, created_at=datetime(2024, 6, 1, 12, 0)),
    ])
    db.commit()

    return {
        "acacia": acacia, "baobab": baobab, "zebra": zebra,
        "a1": a1, "a2": a2, "a3": a3, "b1": b1,
        "alice": alice, "brian": brian, "carol": carol, "dan": dan,
    }


@pytest.fixture()
def scope():
    return LandlordScope(landlord_id=LANDLORD_ID)


@pytest.fixture()
def sql_source(db_session, scope):
    return SqlRecordSource(db_session, scope)


@pytest.fixture()
def service(sql_source, portfolio):
    return ReportService(sql_source, today=TODAY)


def make_token(subject=LANDLORD_ID, secret=None, audience="authenticated"):
    claims = {"sub": str(subject), "aud": audience}
    return jwt.encode(claims, secret or settings.SUPABASE_JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture()
def auth_headers():
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture(autouse=True)
def fresh_generations():
    generation_registry.reset()
    yield
    generation_registry.reset()


@pytest.fixture()
def client(db_session, portfolio):
    def override_get_db():
        yield db_session

    def override_report_service(source=Depends(get_record_source)):
        return ReportService(source, today=TODAY)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_report_service] = override_report_service
    yield TestClient(app)
    app.dependency_overrides.clear()
