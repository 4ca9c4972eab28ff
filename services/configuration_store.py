"""
Durable, named collection of instrument configurations.

ConfigurationStore is the interface the API and the assessment runner depend on; two
implementations ship here: an in-process store (tests, embedding) and a SQL store backed
by the async SQLAlchemy session. Every mutation touches exactly one record, except
set_default which also clears the previous default of the same instrument type.
Errors propagate to the caller unchanged.
"""
from __future__ import annotations

import re
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

import structlog
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import InstrumentConfigurationRecord
from schemas.configuration import InstrumentConfiguration
from schemas.enums import InstrumentType
from services.defaults import (
    LOAN_PARAMETERS,
    SEED_CONFIGURATIONS,
    default_documents,
    default_requirements,
    default_risk_factors,
)
from services.exceptions import (
    ConfigurationValidationError,
    DuplicateIdError,
    NotFoundError,
    ProtectedDefaultError,
    VersionConflictError,
)

logger = structlog.get_logger()

UPDATABLE_FIELDS = frozenset({
    "name",
    "is_active",
    "minimum_requirements",
    "required_documents",
    "risk_factors",
    "data_points",
    "category_weights",
    "min_loan_amount",
    "max_loan_amount",
    "min_term",
    "max_term",
    "base_interest_rate",
})


def slugify(name: str) -> str:
    """'Equipment Financing' -> 'equipment_financing'; every non-alphanumeric becomes '_'."""
    if not name or not name.strip():
        raise ConfigurationValidationError("Configuration name must not be empty")
    return re.sub(r"[^a-z0-9]", "_", name.strip().lower())


def _utc(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _next_timestamp(previous: datetime | None = None) -> datetime:
    """Now, but strictly after `previous` so last_modified orders writes to one record."""
    now = datetime.now(timezone.utc)
    if previous is not None and now <= _utc(previous):
        return _utc(previous) + timedelta(microseconds=1)
    return now


def new_configuration(config_id: str, name: str, instrument_type: InstrumentType) -> InstrumentConfiguration:
    now = _next_timestamp()
    return InstrumentConfiguration(
        id=config_id,
        name=name.strip(),
        instrument_type=instrument_type,
        is_active=True,
        is_default=False,
        minimum_requirements=default_requirements(instrument_type),
        required_documents=default_documents(instrument_type),
        risk_factors=default_risk_factors(instrument_type),
        created_at=now,
        last_modified=now,
        version=1,
        **LOAN_PARAMETERS[instrument_type],
    )


def merge_update(
    current: InstrumentConfiguration,
    fields: Mapping[str, Any],
    expected_version: int | None = None,
) -> InstrumentConfiguration:
    """Merge partial fields into a copy of `current`, stamping last_modified and version."""
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ConfigurationValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
    if expected_version is not None and expected_version != current.version:
        raise VersionConflictError(current.id, expected_version, current.version)

    data = current.model_dump()
    data.update(fields)
    data["last_modified"] = _next_timestamp(current.last_modified)
    data["version"] = current.version + 1
    try:
        return InstrumentConfiguration.model_validate(data)
    except ValidationError as e:
        raise ConfigurationValidationError(str(e)) from e


def defaults_reset(current: InstrumentConfiguration) -> InstrumentConfiguration:
    """
    Rebuild requirements, documents, risk factors and loan parameters from the instrument
    defaults and drop any data-point or weight overrides. Identity, name, default flag and
    created_at are kept; the configuration comes back active.
    """
    fresh = new_configuration(current.id, current.name, current.instrument_type)
    return _stamp(
        current,
        is_active=True,
        minimum_requirements=fresh.minimum_requirements,
        required_documents=fresh.required_documents,
        risk_factors=fresh.risk_factors,
        data_points=None,
        category_weights=None,
        min_loan_amount=fresh.min_loan_amount,
        max_loan_amount=fresh.max_loan_amount,
        min_term=fresh.min_term,
        max_term=fresh.max_term,
        base_interest_rate=fresh.base_interest_rate,
    )


def _stamp(config: InstrumentConfiguration, **changes: Any) -> InstrumentConfiguration:
    return config.model_copy(
        update={
            **changes,
            "last_modified": _next_timestamp(config.last_modified),
            "version": config.version + 1,
        }
    )


class ConfigurationStore(ABC):
    @abstractmethod
    async def create(self, name: str, instrument_type: InstrumentType) -> InstrumentConfiguration: ...

    @abstractmethod
    async def get(self, config_id: str) -> InstrumentConfiguration: ...

    @abstractmethod
    async def list(
        self, instrument_type: InstrumentType | None = None, active_only: bool = False
    ) -> list[InstrumentConfiguration]: ...

    @abstractmethod
    async def update(
        self, config_id: str, fields: Mapping[str, Any], expected_version: int | None = None
    ) -> InstrumentConfiguration: ...

    @abstractmethod
    async def delete(self, config_id: str) -> None: ...

    @abstractmethod
    async def toggle_active(self, config_id: str) -> InstrumentConfiguration: ...

    @abstractmethod
    async def set_default(self, config_id: str) -> InstrumentConfiguration: ...

    @abstractmethod
    async def reset_to_defaults(self, config_id: str) -> InstrumentConfiguration: ...


class InMemoryConfigurationStore(ConfigurationStore):
    """Process-local store. Returned objects are copies; mutate through the store only."""

    def __init__(self, configurations: list[InstrumentConfiguration] | None = None):
        self._configs: dict[str, InstrumentConfiguration] = {}
        self._lock = threading.RLock()
        for c in configurations or []:
            self._configs[c.id] = c.model_copy(deep=True)

    def _get(self, config_id: str) -> InstrumentConfiguration:
        try:
            return self._configs[config_id]
        except KeyError:
            raise NotFoundError(config_id) from None

    async def create(self, name: str, instrument_type: InstrumentType) -> InstrumentConfiguration:
        config_id = slugify(name)
        with self._lock:
            if config_id in self._configs:
                raise DuplicateIdError(config_id)
            config = new_configuration(config_id, name, InstrumentType(instrument_type))
            self._configs[config_id] = config
        logger.info("configuration_created", configuration_id=config_id, instrument_type=config.instrument_type.value)
        return config.model_copy(deep=True)

    async def get(self, config_id: str) -> InstrumentConfiguration:
        return self._get(config_id).model_copy(deep=True)

    async def list(
        self, instrument_type: InstrumentType | None = None, active_only: bool = False
    ) -> list[InstrumentConfiguration]:
        with self._lock:
            configs = list(self._configs.values())
        return [
            c.model_copy(deep=True)
            for c in configs
            if (instrument_type is None or c.instrument_type == instrument_type)
            and (not active_only or c.is_active)
        ]

    async def update(
        self, config_id: str, fields: Mapping[str, Any], expected_version: int | None = None
    ) -> InstrumentConfiguration:
        with self._lock:
            updated = merge_update(self._get(config_id), fields, expected_version)
            self._configs[config_id] = updated
        logger.info("configuration_updated", configuration_id=config_id, version=updated.version, fields=sorted(fields))
        return updated.model_copy(deep=True)

    async def delete(self, config_id: str) -> None:
        with self._lock:
            config = self._get(config_id)
            if config.is_default:
                raise ProtectedDefaultError(config_id)
            del self._configs[config_id]
        logger.info("configuration_deleted", configuration_id=config_id)

    async def toggle_active(self, config_id: str) -> InstrumentConfiguration:
        with self._lock:
            config = self._get(config_id)
            updated = _stamp(config, is_active=not config.is_active)
            self._configs[config_id] = updated
        logger.info("configuration_toggled", configuration_id=config_id, is_active=updated.is_active)
        return updated.model_copy(deep=True)

    async def set_default(self, config_id: str) -> InstrumentConfiguration:
        with self._lock:
            target = self._get(config_id)
            for other in list(self._configs.values()):
                if other.id != config_id and other.is_default and other.instrument_type == target.instrument_type:
                    self._configs[other.id] = _stamp(other, is_default=False)
            updated = target if target.is_default else _stamp(target, is_default=True)
            self._configs[config_id] = updated
        logger.info("configuration_default_set", configuration_id=config_id)
        return updated.model_copy(deep=True)

    async def reset_to_defaults(self, config_id: str) -> InstrumentConfiguration:
        with self._lock:
            updated = defaults_reset(self._get(config_id))
            self._configs[config_id] = updated
        logger.info("configuration_reset", configuration_id=config_id, version=updated.version)
        return updated.model_copy(deep=True)


class SqlConfigurationStore(ConfigurationStore):
    """Store backed by the instrument_configurations table; the caller owns the transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _load(self, config_id: str) -> InstrumentConfigurationRecord:
        record = await self.session.get(InstrumentConfigurationRecord, config_id)
        if record is None:
            raise NotFoundError(config_id)
        return record

    async def create(self, name: str, instrument_type: InstrumentType) -> InstrumentConfiguration:
        config_id = slugify(name)
        if await self.session.get(InstrumentConfigurationRecord, config_id) is not None:
            raise DuplicateIdError(config_id)
        config = new_configuration(config_id, name, InstrumentType(instrument_type))
        record = InstrumentConfigurationRecord(id=config_id)
        _write_record(record, config)
        self.session.add(record)
        await self.session.flush()
        logger.info("configuration_created", configuration_id=config_id, instrument_type=config.instrument_type.value)
        return config

    async def get(self, config_id: str) -> InstrumentConfiguration:
        return record_to_schema(await self._load(config_id))

    async def list(
        self, instrument_type: InstrumentType | None = None, active_only: bool = False
    ) -> list[InstrumentConfiguration]:
        stmt = select(InstrumentConfigurationRecord).order_by(InstrumentConfigurationRecord.name)
        if instrument_type is not None:
            stmt = stmt.where(InstrumentConfigurationRecord.instrument_type == InstrumentType(instrument_type).value)
        if active_only:
            stmt = stmt.where(InstrumentConfigurationRecord.is_active.is_(True))
        result = await self.session.execute(stmt)
        return [record_to_schema(r) for r in result.scalars().all()]

    async def update(
        self, config_id: str, fields: Mapping[str, Any], expected_version: int | None = None
    ) -> InstrumentConfiguration:
        record = await self._load(config_id)
        updated = merge_update(record_to_schema(record), fields, expected_version)
        _write_record(record, updated)
        await self.session.flush()
        logger.info("configuration_updated", configuration_id=config_id, version=updated.version, fields=sorted(fields))
        return updated

    async def delete(self, config_id: str) -> None:
        record = await self._load(config_id)
        if record.is_default:
            raise ProtectedDefaultError(config_id)
        await self.session.delete(record)
        await self.session.flush()
        logger.info("configuration_deleted", configuration_id=config_id)

    async def toggle_active(self, config_id: str) -> InstrumentConfiguration:
        record = await self._load(config_id)
        current = record_to_schema(record)
        updated = _stamp(current, is_active=not current.is_active)
        _write_record(record, updated)
        await self.session.flush()
        logger.info("configuration_toggled", configuration_id=config_id, is_active=updated.is_active)
        return updated

    async def set_default(self, config_id: str) -> InstrumentConfiguration:
        record = await self._load(config_id)
        result = await self.session.execute(
            select(InstrumentConfigurationRecord).where(
                InstrumentConfigurationRecord.instrument_type == record.instrument_type,
                InstrumentConfigurationRecord.is_default.is_(True),
                InstrumentConfigurationRecord.id != config_id,
            )
        )
        for other in result.scalars().all():
            _write_record(other, _stamp(record_to_schema(other), is_default=False))
        current = record_to_schema(record)
        updated = current if current.is_default else _stamp(current, is_default=True)
        _write_record(record, updated)
        await self.session.flush()
        logger.info("configuration_default_set", configuration_id=config_id)
        return updated

    async def reset_to_defaults(self, config_id: str) -> InstrumentConfiguration:
        record = await self._load(config_id)
        updated = defaults_reset(record_to_schema(record))
        _write_record(record, updated)
        await self.session.flush()
        logger.info("configuration_reset", configuration_id=config_id, version=updated.version)
        return updated


def record_to_schema(record: InstrumentConfigurationRecord) -> InstrumentConfiguration:
    return InstrumentConfiguration.model_validate({
        "id": record.id,
        "name": record.name,
        "instrument_type": record.instrument_type,
        "is_active": record.is_active,
        "is_default": record.is_default,
        "minimum_requirements": record.minimum_requirements or [],
        "required_documents": record.required_documents or [],
        "risk_factors": record.risk_factors or [],
        "data_points": record.data_points,
        "category_weights": record.category_weights,
        "min_loan_amount": record.min_loan_amount,
        "max_loan_amount": record.max_loan_amount,
        "min_term": record.min_term,
        "max_term": record.max_term,
        "base_interest_rate": record.base_interest_rate,
        "created_at": _utc(record.created_at),
        "last_modified": _utc(record.last_modified),
        "version": record.version,
    })


def _write_record(record: InstrumentConfigurationRecord, config: InstrumentConfiguration) -> None:
    data = config.model_dump(mode="json")
    record.name = config.name
    record.instrument_type = config.instrument_type.value
    record.is_active = config.is_active
    record.is_default = config.is_default
    record.minimum_requirements = data["minimum_requirements"]
    record.required_documents = data["required_documents"]
    record.risk_factors = data["risk_factors"]
    record.data_points = data["data_points"]
    record.category_weights = data["category_weights"]
    record.min_loan_amount = config.min_loan_amount
    record.max_loan_amount = config.max_loan_amount
    record.min_term = config.min_term
    record.max_term = config.max_term
    record.base_interest_rate = config.base_interest_rate
    record.version = config.version
    record.created_at = config.created_at
    record.last_modified = config.last_modified


async def seed_default_configurations(store: ConfigurationStore) -> list[InstrumentConfiguration]:
    """Create the built-in configurations that are missing; the first one is marked default."""
    existing = {c.id for c in await store.list()}
    created: list[InstrumentConfiguration] = []
    for index, (name, instrument_type) in enumerate(SEED_CONFIGURATIONS):
        if slugify(name) in existing:
            continue
        config = await store.create(name, instrument_type)
        if index == 0:
            config = await store.set_default(config.id)
        created.append(config)
    if created:
        logger.info("configurations_seeded", count=len(created))
    return created
