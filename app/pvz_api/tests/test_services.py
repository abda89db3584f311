import asyncio
import datetime as dt
import uuid

import pytest
from sqlalchemy import update

from app.pvz_api.db.models import (
    City,
    Product,
    ProductType,
    Reception,
    ReceptionStatus,
    UserRole,
)
from app.pvz_api.db.repo import PVZRepository, ReceptionRepository
from app.pvz_api.db.session import transaction
from app.pvz_api.services.errors import (
    InvalidArgumentError,
    InvalidCity,
    InvalidCredentials,
    InvalidEmail,
    InvalidPagination,
    InvalidProductType,
    NoActiveReception,
    NoProductsInReception,
    PickupPointAlreadyHasOpenReception,
    PickupPointNotFound,
    UserAlreadyExists,
)
from app.pvz_api.services.locks import PickupPointLocks
from app.pvz_api.services.reception_service import ReceptionService


def _now():
    return dt.datetime.now(tz=dt.timezone.utc)


class TestCreatePVZ:

    async def test_create_returns_generated_id_and_date(self, pvz_service):
        pvz = await pvz_service.create_pvz("Казань")
        assert isinstance(pvz.id, uuid.UUID)
        assert pvz.city == City.KAZAN
        assert pvz.registration_date is not None

    async def test_rejects_unknown_city(self, pvz_service):
        with pytest.raises(InvalidCity):
            await pvz_service.create_pvz("Новосибирск")

    async def test_new_pvz_listed_without_receptions(self, pvz_service, pvz):
        items = await pvz_service.list_with_receptions(page=1, limit=10)
        assert [item.pvz.id for item in items] == [pvz.id]
        assert items[0].receptions == []

    async def test_list_all(self, pvz_service):
        created = [await pvz_service.create_pvz(city) for city in ("Москва", "Казань")]
        listed = await pvz_service.list_all_pvz()
        assert {p.id for p in listed} == {p.id for p in created}


class TestReceptions:

    async def test_second_open_reception_conflicts(self, reception_service, pvz):
        reception = await reception_service.create_reception(pvz.id)
        assert reception.status == ReceptionStatus.IN_PROGRESS
        assert reception.pvz_id == pvz.id

        with pytest.raises(PickupPointAlreadyHasOpenReception):
            await reception_service.create_reception(pvz.id)

    async def test_reopen_after_close(self, reception_service, pvz_service, pvz):
        first = await reception_service.create_reception(pvz.id)
        closed = await pvz_service.close_last_reception(pvz.id)
        assert closed.id == first.id
        assert closed.status == ReceptionStatus.CLOSE

        second = await reception_service.create_reception(str(pvz.id))
        assert second.id != first.id
        assert second.status == ReceptionStatus.IN_PROGRESS

    async def test_unknown_pvz(self, reception_service):
        with pytest.raises(PickupPointNotFound):
            await reception_service.create_reception(uuid.uuid4())

    async def test_malformed_pvz_id_is_not_found(self, reception_service):
        with pytest.raises(PickupPointNotFound):
            await reception_service.create_reception("not-a-uuid")

    async def test_close_twice(self, reception_service, pvz_service, pvz):
        await reception_service.create_reception(pvz.id)
        await pvz_service.close_last_reception(pvz.id)
        with pytest.raises(NoActiveReception):
            await pvz_service.close_last_reception(pvz.id)

    async def test_close_without_receptions(self, pvz_service, pvz):
        with pytest.raises(NoActiveReception):
            await pvz_service.close_last_reception(pvz.id)

    async def test_close_unknown_pvz(self, pvz_service):
        with pytest.raises(PickupPointNotFound):
            await pvz_service.close_last_reception(uuid.uuid4())

    async def test_store_rejects_second_open_reception(self, session_factory, pvz):
        repo = ReceptionRepository()
        async with transaction(session_factory) as session:
            await repo.create(session, pvz.id)

        with pytest.raises(PickupPointAlreadyHasOpenReception):
            async with transaction(session_factory) as session:
                await repo.create(session, pvz.id)

    async def test_unique_index_catches_stale_check(self, session_factory, pvz):
        class StaleReceptionRepository(ReceptionRepository):
            async def get_last(self, session, pvz_id, for_update=False):
                return None

        service = ReceptionService(session_factory, PVZRepository(), StaleReceptionRepository())
        await service.create_reception(pvz.id)
        with pytest.raises(PickupPointAlreadyHasOpenReception):
            await service.create_reception(pvz.id)


class TestProducts:

    async def test_add_without_reception(self, product_service, pvz):
        with pytest.raises(NoActiveReception):
            await product_service.add_product("электроника", pvz.id)

    async def test_add_to_open_reception(self, product_service, reception_service, pvz):
        reception = await reception_service.create_reception(pvz.id)
        product = await product_service.add_product("обувь", pvz.id)
        assert product.type == ProductType.SHOES
        assert product.reception_id == reception.id

    async def test_rejects_unknown_type(self, product_service, reception_service, pvz):
        await reception_service.create_reception(pvz.id)
        with pytest.raises(InvalidProductType):
            await product_service.add_product("мебель", pvz.id)

    async def test_unknown_pvz(self, product_service):
        with pytest.raises(PickupPointNotFound):
            await product_service.add_product("одежда", uuid.uuid4())

    async def test_add_and_delete_fail_after_close(
        self, product_service, reception_service, pvz_service, pvz
    ):
        await reception_service.create_reception(pvz.id)
        await product_service.add_product("одежда", pvz.id)
        await pvz_service.close_last_reception(pvz.id)

        with pytest.raises(NoActiveReception):
            await product_service.add_product("одежда", pvz.id)
        with pytest.raises(NoActiveReception):
            await pvz_service.delete_last_product(pvz.id)

    async def test_delete_removes_last_added(
        self, product_service, reception_service, pvz_service, pvz
    ):
        await reception_service.create_reception(pvz.id)
        added = []
        for product_type in ("электроника", "одежда", "обувь", "одежда"):
            added.append(await product_service.add_product(product_type, pvz.id))

        await pvz_service.delete_last_product(pvz.id)

        items = await pvz_service.list_with_receptions(page=1, limit=10)
        remaining = [p.id for p in items[0].receptions[0].products]
        assert remaining == [p.id for p in added[:-1]]

    async def test_delete_from_empty_reception(self, reception_service, pvz_service, pvz):
        await reception_service.create_reception(pvz.id)
        with pytest.raises(NoProductsInReception):
            await pvz_service.delete_last_product(pvz.id)

    async def test_delete_without_reception(self, pvz_service, pvz):
        with pytest.raises(NoActiveReception):
            await pvz_service.delete_last_product(pvz.id)

    async def test_delete_unknown_pvz(self, pvz_service):
        with pytest.raises(PickupPointNotFound):
            await pvz_service.delete_last_product(uuid.uuid4())

    async def test_delete_only_touches_current_reception(
        self, product_service, reception_service, pvz_service, pvz
    ):
        await reception_service.create_reception(pvz.id)
        await product_service.add_product("обувь", pvz.id)
        await pvz_service.close_last_reception(pvz.id)
        await reception_service.create_reception(pvz.id)

        with pytest.raises(NoProductsInReception):
            await pvz_service.delete_last_product(pvz.id)


class TestConcurrency:

    async def test_parallel_deletes_each_remove_a_product(
        self, product_service, reception_service, pvz_service, pvz
    ):
        await reception_service.create_reception(pvz.id)
        added = []
        for product_type in ("электроника", "одежда", "обувь"):
            added.append(await product_service.add_product(product_type, pvz.id))

        results = await asyncio.gather(
            pvz_service.delete_last_product(pvz.id),
            pvz_service.delete_last_product(pvz.id),
        )

        assert results == [None, None]
        items = await pvz_service.list_with_receptions(page=1, limit=10)
        assert [p.id for p in items[0].receptions[0].products] == [added[0].id]

    async def test_parallel_deletes_stop_at_empty_reception(
        self, product_service, reception_service, pvz_service, pvz
    ):
        await reception_service.create_reception(pvz.id)
        await product_service.add_product("обувь", pvz.id)

        results = await asyncio.gather(
            pvz_service.delete_last_product(pvz.id),
            pvz_service.delete_last_product(pvz.id),
            return_exceptions=True,
        )

        assert results.count(None) == 1
        assert sum(isinstance(r, NoProductsInReception) for r in results) == 1

    async def test_parallel_opens_create_one_reception(self, reception_service, pvz_service, pvz):
        results = await asyncio.gather(
            reception_service.create_reception(pvz.id),
            reception_service.create_reception(pvz.id),
            reception_service.create_reception(str(pvz.id)),
            return_exceptions=True,
        )

        opened = [r for r in results if isinstance(r, Reception)]
        assert len(opened) == 1
        assert sum(isinstance(r, PickupPointAlreadyHasOpenReception) for r in results) == 2
        items = await pvz_service.list_with_receptions(page=1, limit=10)
        assert [r.reception.id for r in items[0].receptions] == [opened[0].id]

    async def test_parallel_adds_land_in_open_reception(
        self, product_service, reception_service, pvz_service, pvz
    ):
        reception = await reception_service.create_reception(pvz.id)

        products = await asyncio.gather(
            *(product_service.add_product("одежда", pvz.id) for _ in range(5))
        )

        assert {p.reception_id for p in products} == {reception.id}
        items = await pvz_service.list_with_receptions(page=1, limit=10)
        assert len(items[0].receptions[0].products) == 5

    async def test_lock_is_shared_per_pickup_point(self):
        locks = PickupPointLocks()
        first, second = uuid.uuid4(), uuid.uuid4()
        held = locks.get(first)
        assert locks.get(first) is held
        assert locks.get(second) is not held

        async with locks.hold(first):
            assert held.locked()
            assert not locks.get(second).locked()
        assert not held.locked()


class TestListing:

    async def test_full_scenario(self, product_service, reception_service, pvz_service):
        pvz = await pvz_service.create_pvz("Москва")
        reception = await reception_service.create_reception(pvz.id)
        added = [
            await product_service.add_product(t, pvz.id)
            for t in ("электроника", "одежда", "обувь")
        ]
        await pvz_service.close_last_reception(pvz.id)

        items = await pvz_service.list_with_receptions()
        assert len(items) == 1
        assert items[0].pvz.id == pvz.id
        assert len(items[0].receptions) == 1
        entry = items[0].receptions[0]
        assert entry.reception.id == reception.id
        assert entry.reception.status == ReceptionStatus.CLOSE
        assert [p.id for p in entry.products] == [p.id for p in added]

    async def test_pages_do_not_overlap(self, pvz_service):
        created = [await pvz_service.create_pvz("Казань") for _ in range(15)]

        first = await pvz_service.list_with_receptions(page=1, limit=10)
        second = await pvz_service.list_with_receptions(page=2, limit=10)
        assert len(first) == 10
        assert len(second) == 5

        ids = [item.pvz.id for item in first + second]
        assert len(set(ids)) == 15
        assert set(ids) == {p.id for p in created}

        dates = [item.pvz.registration_date for item in first + second]
        assert dates == sorted(dates, reverse=True)

    async def test_page_beyond_end_is_empty(self, pvz_service, pvz):
        assert await pvz_service.list_with_receptions(page=5, limit=10) == []

    @pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (1, 31), (-1, 5)])
    async def test_invalid_pagination(self, pvz_service, page, limit):
        with pytest.raises(InvalidPagination):
            await pvz_service.list_with_receptions(page=page, limit=limit)

    async def test_start_must_precede_end(self, pvz_service):
        moment = _now()
        with pytest.raises(InvalidArgumentError):
            await pvz_service.list_with_receptions(start_date=moment, end_date=moment)

    async def test_date_filter_drops_pvz_without_matches(
        self, product_service, reception_service, pvz_service
    ):
        with_products = await pvz_service.create_pvz("Москва")
        await reception_service.create_reception(with_products.id)
        await product_service.add_product("обувь", with_products.id)

        empty_reception = await pvz_service.create_pvz("Казань")
        await reception_service.create_reception(empty_reception.id)

        await pvz_service.create_pvz("Санкт-Петербург")

        window = await pvz_service.list_with_receptions(
            start_date=_now() - dt.timedelta(hours=1),
            end_date=_now() + dt.timedelta(hours=1),
        )
        assert [item.pvz.id for item in window] == [with_products.id]

        unfiltered = await pvz_service.list_with_receptions()
        assert len(unfiltered) == 3

        past = await pvz_service.list_with_receptions(
            start_date=dt.datetime(2000, 1, 1, tzinfo=dt.timezone.utc),
            end_date=dt.datetime(2001, 1, 1, tzinfo=dt.timezone.utc),
        )
        assert past == []

    async def test_date_filter_limits_products(
        self, session_factory, product_service, reception_service, pvz_service, pvz
    ):
        await reception_service.create_reception(pvz.id)
        old = await product_service.add_product("одежда", pvz.id)
        fresh = await product_service.add_product("обувь", pvz.id)

        async with transaction(session_factory) as session:
            await session.execute(
                update(Product)
                .where(Product.id == old.id)
                .values(date_time=_now() - dt.timedelta(days=30))
            )

        items = await pvz_service.list_with_receptions(start_date=_now() - dt.timedelta(days=1))
        assert [p.id for p in items[0].receptions[0].products] == [fresh.id]

    async def test_open_start_only_end(self, product_service, reception_service, pvz_service, pvz):
        await reception_service.create_reception(pvz.id)
        await product_service.add_product("одежда", pvz.id)

        items = await pvz_service.list_with_receptions(end_date=_now() + dt.timedelta(minutes=5))
        assert len(items) == 1
        assert len(items[0].receptions[0].products) == 1


class TestUsers:

    async def test_register_and_login(self, user_service):
        user = await user_service.register("a@b.com", "secret", "employee")
        assert user.email == "a@b.com"
        assert user.role == UserRole.EMPLOYEE
        assert user.password_hash != "secret"

        logged_in = await user_service.login("a@b.com", "secret")
        assert logged_in.id == user.id

    async def test_duplicate_email(self, user_service):
        await user_service.register("a@b.com", "secret", "moderator")
        with pytest.raises(UserAlreadyExists):
            await user_service.register("a@b.com", "other", "employee")

    async def test_wrong_password(self, user_service):
        await user_service.register("a@b.com", "secret", "employee")
        with pytest.raises(InvalidCredentials):
            await user_service.login("a@b.com", "wrong")

    async def test_unknown_email(self, user_service):
        with pytest.raises(InvalidCredentials):
            await user_service.login("nobody@b.com", "secret")

    async def test_invalid_email(self, user_service):
        with pytest.raises(InvalidEmail):
            await user_service.register("not-an-email", "secret", "employee")

    async def test_invalid_role(self, user_service):
        with pytest.raises(InvalidArgumentError):
            await user_service.register("a@b.com", "secret", "admin")
