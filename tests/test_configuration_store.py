"""
Configuration store behaviour, run against both the in-memory and the SQL implementation.
Run: python -m pytest tests/test_configuration_store.py -v
"""
import unittest

from database import init_db, make_engine, make_sessionmaker
from schemas.enums import InstrumentType
from services.configuration_store import (
    InMemoryConfigurationStore,
    SqlConfigurationStore,
    seed_default_configurations,
    slugify,
)
from services.exceptions import (
    ConfigurationValidationError,
    DuplicateIdError,
    NotFoundError,
    ProtectedDefaultError,
    VersionConflictError,
)

EF = InstrumentType.EQUIPMENT_FINANCING
WC = InstrumentType.WORKING_CAPITAL


class TestSlugify(unittest.TestCase):
    def test_lowercases_and_replaces_non_alphanumerics(self):
        self.assertEqual(slugify("Equipment Financing"), "equipment_financing")
        self.assertEqual(slugify("  Fleet Lease (2026)! "), "fleet_lease__2026__")

    def test_empty_name_rejected(self):
        with self.assertRaises(ConfigurationValidationError):
            slugify("   ")


class StoreBehaviour:
    """Shared checks; subclasses provide self.store."""

    async def test_create_uses_slug_and_defaults(self):
        config = await self.store.create("Equipment Financing", EF)
        self.assertEqual(config.id, "equipment_financing")
        self.assertEqual(config.version, 1)
        self.assertTrue(config.is_active)
        self.assertFalse(config.is_default)
        self.assertEqual(config.created_at, config.last_modified)
        self.assertIn("min_credit_score", [r.id for r in config.minimum_requirements])
        self.assertIn("equipment_quote", [d.id for d in config.required_documents])
        self.assertEqual(config.min_loan_amount, 50_000)

    async def test_duplicate_slug_rejected(self):
        await self.store.create("Working Capital", WC)
        with self.assertRaises(DuplicateIdError):
            await self.store.create("working capital", WC)

    async def test_get_missing(self):
        with self.assertRaises(NotFoundError):
            await self.store.get("nope")

    async def test_update_stamps_and_keeps_id(self):
        created = await self.store.create("Working Capital", WC)
        updated = await self.store.update(created.id, {"name": "Working Capital Plus", "base_interest_rate": 8.75})
        self.assertEqual(updated.id, "working_capital")
        self.assertEqual(updated.name, "Working Capital Plus")
        self.assertEqual(updated.base_interest_rate, 8.75)
        self.assertEqual(updated.version, 2)
        self.assertGreater(updated.last_modified, created.last_modified)
        self.assertEqual(updated.created_at, created.created_at)
        fetched = await self.store.get(created.id)
        self.assertEqual(fetched.name, "Working Capital Plus")

    async def test_update_replaces_requirement_list(self):
        created = await self.store.create("Working Capital", WC)
        requirement = {
            "id": "min_credit_score", "name": "Minimum Credit Score", "type": "credit_score",
            "minimum_value": 700, "weight": 50, "is_required": True,
        }
        updated = await self.store.update(created.id, {"minimum_requirements": [requirement]})
        self.assertEqual([r.minimum_value for r in updated.minimum_requirements], [700])

    async def test_update_rejects_unknown_fields(self):
        created = await self.store.create("Working Capital", WC)
        with self.assertRaises(ConfigurationValidationError):
            await self.store.update(created.id, {"id": "other"})

    async def test_invalid_update_leaves_config_unchanged(self):
        created = await self.store.create("Working Capital", WC)
        with self.assertRaises(ConfigurationValidationError):
            await self.store.update(created.id, {"min_loan_amount": 5_000_000})
        fetched = await self.store.get(created.id)
        self.assertEqual(fetched.min_loan_amount, created.min_loan_amount)
        self.assertEqual(fetched.version, 1)

    async def test_stale_version_rejected(self):
        created = await self.store.create("Working Capital", WC)
        await self.store.update(created.id, {"name": "First"}, expected_version=1)
        with self.assertRaises(VersionConflictError):
            await self.store.update(created.id, {"name": "Second"}, expected_version=1)
        self.assertEqual((await self.store.get(created.id)).name, "First")

    async def test_default_cannot_be_deleted(self):
        created = await self.store.create("Equipment Financing", EF)
        await self.store.set_default(created.id)
        with self.assertRaises(ProtectedDefaultError):
            await self.store.delete(created.id)
        self.assertTrue((await self.store.get(created.id)).is_default)

    async def test_delete(self):
        created = await self.store.create("Working Capital", WC)
        await self.store.delete(created.id)
        with self.assertRaises(NotFoundError):
            await self.store.get(created.id)
        with self.assertRaises(NotFoundError):
            await self.store.delete(created.id)

    async def test_toggle_active(self):
        created = await self.store.create("Working Capital", WC)
        off = await self.store.toggle_active(created.id)
        self.assertFalse(off.is_active)
        self.assertEqual(off.version, 2)
        on = await self.store.toggle_active(created.id)
        self.assertTrue(on.is_active)

    async def test_one_default_per_instrument_type(self):
        first = await self.store.create("Equipment Financing", EF)
        second = await self.store.create("Equipment Financing Plus", EF)
        other = await self.store.create("Working Capital", WC)
        await self.store.set_default(first.id)
        await self.store.set_default(other.id)
        await self.store.set_default(second.id)

        defaults = {c.id for c in await self.store.list() if c.is_default}
        self.assertEqual(defaults, {second.id, other.id})
        await self.store.delete(first.id)

    async def test_list_filters(self):
        await self.store.create("Equipment Financing", EF)
        wc = await self.store.create("Working Capital", WC)
        await self.store.toggle_active(wc.id)
        self.assertEqual({c.id for c in await self.store.list()}, {"equipment_financing", "working_capital"})
        self.assertEqual([c.id for c in await self.store.list(instrument_type=WC)], ["working_capital"])
        self.assertEqual([c.id for c in await self.store.list(active_only=True)], ["equipment_financing"])

    async def test_data_point_and_weight_overrides_persist(self):
        created = await self.store.create("Working Capital", WC)
        self.assertIsNone(created.data_points)
        self.assertIsNone(created.category_weights)
        custom_point = {
            "id": "credit-score", "label": "Credit Score", "category": "creditworthiness",
            "good": "700-850", "average": "620-699", "negative": "300-619",
            "points": {"good": 4, "average": 3, "negative": 0},
        }
        weights = {"credit_worthiness_weight": 80, "financial_ratio_weight": 20}
        updated = await self.store.update(created.id, {"data_points": [custom_point], "category_weights": weights})
        fetched = await self.store.get(created.id)
        for config in (updated, fetched):
            self.assertEqual([dp.good for dp in config.data_points], ["700-850"])
            self.assertEqual(config.data_points[0].points.average, 3)
            self.assertEqual(config.category_weights.credit_worthiness_weight, 80)

    async def test_reset_to_defaults_rebuilds_content_and_keeps_identity(self):
        created = await self.store.create("Working Capital", WC)
        await self.store.set_default(created.id)
        requirement = {
            "id": "min_credit_score", "name": "Minimum Credit Score", "type": "credit_score",
            "minimum_value": 700, "weight": 50, "is_required": True,
        }
        await self.store.update(created.id, {
            "name": "Working Capital Custom",
            "minimum_requirements": [requirement],
            "required_documents": [],
            "base_interest_rate": 19.5,
            "category_weights": {"cash_flow_weight": 100},
        })
        edited = await self.store.toggle_active(created.id)

        reset = await self.store.reset_to_defaults(created.id)
        self.assertEqual(reset.id, created.id)
        self.assertEqual(reset.name, "Working Capital Custom")
        self.assertTrue(reset.is_default)
        self.assertTrue(reset.is_active)
        self.assertEqual(reset.created_at, created.created_at)
        self.assertEqual(reset.version, edited.version + 1)
        self.assertGreater(reset.last_modified, edited.last_modified)
        self.assertEqual(reset.minimum_requirements, created.minimum_requirements)
        self.assertEqual(reset.required_documents, created.required_documents)
        self.assertEqual(reset.risk_factors, created.risk_factors)
        self.assertEqual(reset.base_interest_rate, created.base_interest_rate)
        self.assertIsNone(reset.category_weights)
        self.assertEqual((await self.store.get(created.id)).minimum_requirements, created.minimum_requirements)

    async def test_reset_missing(self):
        with self.assertRaises(NotFoundError):
            await self.store.reset_to_defaults("nope")

    async def test_seed_is_idempotent(self):
        created = await seed_default_configurations(self.store)
        self.assertEqual(len(created), 4)
        self.assertTrue((await self.store.get("equipment_financing")).is_default)
        self.assertEqual(await seed_default_configurations(self.store), [])
        self.assertEqual(len(await self.store.list()), 4)


class TestInMemoryConfigurationStore(StoreBehaviour, unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.store = InMemoryConfigurationStore()

    async def test_returned_objects_are_copies(self):
        created = await self.store.create("Working Capital", WC)
        created.minimum_requirements.clear()
        self.assertTrue((await self.store.get(created.id)).minimum_requirements)


class TestSqlConfigurationStore(StoreBehaviour, unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.engine = make_engine("sqlite+aiosqlite:///:memory:")
        await init_db(bind=self.engine)
        self.session = make_sessionmaker(self.engine)()
        self.store = SqlConfigurationStore(self.session)

    async def asyncTearDown(self):
        await self.session.close()
        await self.engine.dispose()

    async def test_survives_commit(self):
        await self.store.create("Working Capital", WC)
        await self.session.commit()
        async with make_sessionmaker(self.engine)() as other:
            fetched = await SqlConfigurationStore(other).get("working_capital")
        self.assertEqual(fetched.instrument_type, WC)
        self.assertIsNotNone(fetched.created_at.tzinfo)


if __name__ == "__main__":
    unittest.main()
