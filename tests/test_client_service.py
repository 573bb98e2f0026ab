"""
客户、客户报表与系统设置服务测试
"""
import pytest
from datetime import date
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bizmanager.core.middleware import BusinessException, NotFoundException, ValidationException
from bizmanager.models import Activity, Quote, Tracking
from bizmanager.schemas.client import ClientCreateRequest, ClientUpdateRequest, ClientStatus
from bizmanager.schemas.report import ClientDetailResponse
from bizmanager.schemas.settings import SettingsUpdateRequest
from bizmanager.services.client_service import client_service
from bizmanager.services.report_service import report_service, parse_statuses
from bizmanager.services.settings_service import settings_service

from factories import (
    create_test_client, create_test_quote, create_test_activity, create_test_tracking, utc,
)


class TestClientService:
    """客户管理服务测试"""

    @pytest.mark.asyncio
    async def test_create_and_duplicate_email(self, db_session):
        created = await client_service.create_client(db_session, ClientCreateRequest(
            name="Acme", email="ops@acme.com", company="Acme Inc",
        ))
        assert created.status == "active"
        assert created.created_at is not None

        with pytest.raises(BusinessException) as exc_info:
            await client_service.create_client(db_session, ClientCreateRequest(name="Other", email="ops@acme.com"))
        assert exc_info.value.error_code == "DUPLICATE_EMAIL"

    @pytest.mark.asyncio
    async def test_update_partial(self, db_session):
        client = await create_test_client(db_session, phone="123")
        updated = await client_service.update_client(db_session, client.id, ClientUpdateRequest(
            status=ClientStatus.INACTIVE, city="Miami",
        ))
        assert updated.status == "inactive"
        assert updated.city == "Miami"
        assert updated.phone == "123"

    @pytest.mark.asyncio
    async def test_update_to_taken_email(self, db_session):
        await create_test_client(db_session, name="Acme", email="a@example.com")
        other = await create_test_client(db_session, name="Globex", email="g@example.com")
        with pytest.raises(BusinessException):
            await client_service.update_client(db_session, other.id, ClientUpdateRequest(email="a@example.com"))

    @pytest.mark.asyncio
    async def test_search(self, db_session):
        await create_test_client(db_session, name="Acme", company="Roadrunner Supplies")
        await create_test_client(db_session, name="Globex")
        found = await client_service.list_clients(db_session, search="roadrunner")
        assert [c.name for c in found] == ["Acme"]

    @pytest.mark.asyncio
    async def test_delete_cascades(self, db_session):
        """删除客户级联删除报价单、动态记录和物流单"""
        client = await create_test_client(db_session)
        quote = await create_test_quote(db_session, client)
        await create_test_activity(db_session, quote)
        await create_test_tracking(db_session, client, quotes=[quote])

        await client_service.delete_client(db_session, client.id)

        for model in (Quote, Activity, Tracking):
            assert (await db_session.execute(select(func.count(model.id)))).scalar() == 0
        with pytest.raises(NotFoundException):
            await client_service.get_client(db_session, client.id)

    @pytest.mark.asyncio
    async def test_detail_includes_quotes_newest_first(self, db_session):
        client = await create_test_client(db_session)
        older = await create_test_quote(db_session, client, created_at=utc(2025, 1, 1))
        newer = await create_test_quote(db_session, client, created_at=utc(2025, 2, 1))

        detail = await client_service.get_client_detail(db_session, client.id)
        assert [q.id for q in detail.quotes] == [newer.id, older.id]

    @pytest.mark.asyncio
    async def test_detail_relations_readable_in_new_session(self, db_engine):
        """新会话中读取详情，报价单、报价单所属客户和物流单都已加载"""
        session_maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
        async with session_maker() as setup_session:
            client = await create_test_client(setup_session, name="Wayne")
            quote = await create_test_quote(setup_session, client)
            await create_test_tracking(setup_session, client, quotes=[quote])
            client_id, quote_id = client.id, quote.id

        async with session_maker() as session:
            detail = await client_service.get_client_detail(session, client_id)

            assert [q.id for q in detail.quotes] == [quote_id]
            assert detail.quotes[0].client.name == "Wayne"
            assert [t.tracking_number for t in detail.trackings] == ["TRK001"]

            response = ClientDetailResponse.model_validate(detail)
            assert response.quotes[0].client.name == "Wayne"
            assert response.trackings[0].total_value == 220

    @pytest.mark.asyncio
    async def test_detail_after_adding_quote_in_same_session(self, db_session):
        """同一会话先读客户再新增报价单，详情能看到新报价单"""
        client = await create_test_client(db_session)
        await client_service.get_client_detail(db_session, client.id)
        quote = await create_test_quote(db_session, client)

        detail = await client_service.get_client_detail(db_session, client.id)
        assert [q.id for q in detail.quotes] == [quote.id]
        assert detail.quotes[0].client.id == client.id


class TestClientReport:
    """客户报表测试"""

    def test_parse_statuses(self):
        assert parse_statuses(None) == []
        assert parse_statuses("paid, shipment,paid") == ["paid", "shipment"]
        with pytest.raises(ValidationException):
            parse_statuses("lost")

    @pytest.mark.asyncio
    async def test_report_with_date_range(self, db_session):
        client = await create_test_client(db_session)
        in_range = await create_test_quote(
            db_session, client, status="paid", charged_amount="100", amount_paid="100", created_at=utc(2025, 3, 31, 23),
        )
        await create_test_quote(db_session, client, status="paid", created_at=utc(2025, 4, 1, 1))
        await create_test_tracking(
            db_session, client, declared_value="100", shipping_cost="10", amount_paid="30",
            quotes=[in_range], created_at=utc(2025, 3, 15),
        )

        report = await report_service.get_client_report(
            db_session, client.id, date(2025, 3, 1), date(2025, 3, 31)
        )

        assert [q.id for q in report["quotes"]] == [in_range.id]
        assert len(report["shipments"]) == 1
        metrics = report["metrics"]
        assert metrics["total_charged"] == Decimal("100")
        assert metrics["total_paid"] == Decimal("130")
        assert metrics["total_unpaid"] == Decimal("80")
        assert metrics["total_shipping_value"] == Decimal("110")
        assert metrics["total_declared_value"] == Decimal("100")
        assert {"status": "shipment", "count": 1} in metrics["status_breakdown"]

    @pytest.mark.asyncio
    async def test_status_filter_without_shipment(self, db_session):
        client = await create_test_client(db_session)
        held = await create_test_quote(db_session, client, status="held")
        await create_test_quote(db_session, client, status="paid")
        await create_test_tracking(db_session, client)

        report = await report_service.get_client_report(db_session, client.id, statuses=["held"])

        assert [q.id for q in report["quotes"]] == [held.id]
        assert report["shipments"] == []
        assert report["metrics"]["status_breakdown"] == [{"status": "held", "count": 1}]

    @pytest.mark.asyncio
    async def test_only_shipments(self, db_session):
        client = await create_test_client(db_session)
        await create_test_quote(db_session, client, status="held")
        await create_test_tracking(db_session, client)

        report = await report_service.get_client_report(db_session, client.id, statuses=["shipment"])
        assert report["quotes"] == []
        assert report["metrics"]["total_shipments"] == 1

    @pytest.mark.asyncio
    async def test_invalid_range(self, db_session):
        client = await create_test_client(db_session)
        with pytest.raises(ValidationException):
            await report_service.get_client_report(db_session, client.id, date(2025, 3, 2), date(2025, 3, 1))


class TestSettingsService:
    """系统设置测试"""

    @pytest.mark.asyncio
    async def test_defaults_created_once(self, db_session):
        first = await settings_service.get_settings(db_session)
        second = await settings_service.get_settings(db_session)

        assert first.id == second.id
        assert first.currency == "USD"
        assert first.platform_options == []
        assert first.auto_generate_invoices is False

    @pytest.mark.asyncio
    async def test_partial_update(self, db_session):
        await settings_service.update_settings(db_session, SettingsUpdateRequest(
            company_name="Demo LLC", platform_options=["Amazon", " eBay ", "Amazon", ""],
        ))
        updated = await settings_service.update_settings(db_session, SettingsUpdateRequest(tax_rate=Decimal("7.5")))

        assert updated.company_name == "Demo LLC"
        assert updated.platform_options == ["Amazon", "eBay"]
        assert updated.tax_rate == Decimal("7.5")
        assert updated.currency == "USD"

    @pytest.mark.asyncio
    async def test_null_resets_to_default(self, db_session):
        await settings_service.update_settings(db_session, SettingsUpdateRequest(
            company_name="Demo LLC", currency="EUR", payment_options=["Zelle"],
        ))
        updated = await settings_service.update_settings(db_session, SettingsUpdateRequest(
            company_name=None, currency=None, payment_options=None,
        ))

        assert updated.company_name == ""
        assert updated.currency == "USD"
        assert updated.payment_options == []
