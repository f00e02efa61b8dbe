"""Versioned access to the shared customer record.

The customer row is written by several unrelated services and offers no
stronger guarantee than last-write-wins on its metadata blob. Every write here
is conditional on the version that was read, and a lost race is retried from a
fresh read, so the caller's decision is always re-made against current state.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from zen_rewards.core.errors import ConcurrentUpdate, IdentityNotFound, StoreUnavailable
from zen_rewards.models import Customer
from zen_rewards.utils.log import sanitize_identity

logger = logging.getLogger(__name__)

T = TypeVar("T")

__all__ = [
    "CustomerRecord",
    "CustomerStore",
    "StaleRecordError",
    "Mutation",
]


class StaleRecordError(Exception):
    """The record changed between read and conditional write."""


@dataclass(frozen=True)
class CustomerRecord:
    """Detached snapshot of a customer row."""

    id: int
    external_id: str
    version: int
    metadata: dict[str, Any]


@dataclass(frozen=True)
class Mutation(Generic[T]):
    """Outcome of a mutate callback.

    ``metadata`` of None means "nothing to write"; ``result`` is handed back to
    the caller of `CustomerStore.read_modify_write` either way.
    """

    metadata: dict[str, Any] | None
    result: T


class CustomerStore:
    """Read and conditionally write customer metadata."""

    def __init__(self, db: Session, *, max_retries: int = 3) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.db = db
        self.max_retries = max_retries

    def get(self, external_id: str) -> CustomerRecord:
        """Return a fresh snapshot of the customer.

        Raises:
            IdentityNotFound: If no customer has ``external_id``.
            StoreUnavailable: If the database cannot be reached.
        """
        stmt = (
            select(Customer)
            .where(Customer.external_id == external_id)
            .execution_options(populate_existing=True)
        )
        try:
            customer = self.db.execute(stmt).scalars().first()
        except SQLAlchemyError as err:
            self.db.rollback()
            logger.error("Customer lookup failed for %s: %s", sanitize_identity(external_id), err)
            raise StoreUnavailable() from err

        if customer is None:
            raise IdentityNotFound()
        return CustomerRecord(
            id=customer.id,
            external_id=customer.external_id,
            version=customer.version,
            metadata=copy.deepcopy(customer.metadata_json or {}),
        )

    def write(self, record: CustomerRecord, metadata: dict[str, Any]) -> int:
        """Replace the metadata if the row is still at ``record.version``.

        Returns:
            The new version number.

        Raises:
            StaleRecordError: If another writer got there first.
            StoreUnavailable: If the database cannot be reached.
        """
        stmt = (
            update(Customer)
            .where(Customer.id == record.id, Customer.version == record.version)
            .values({Customer.metadata_json: metadata, Customer.version: record.version + 1})
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            if result.rowcount != 1:
                self.db.rollback()
                raise StaleRecordError(f"customer {record.id} is no longer at version {record.version}")
            self.db.commit()
        except SQLAlchemyError as err:
            self.db.rollback()
            logger.error("Customer write failed for %s: %s", sanitize_identity(record.external_id), err)
            raise StoreUnavailable() from err
        return record.version + 1

    def read_modify_write(
        self,
        external_id: str,
        mutate: Callable[[CustomerRecord], Mutation[T]],
    ) -> T:
        """Apply ``mutate`` to the latest snapshot and persist it atomically.

        ``mutate`` may raise a domain error to abort without writing. On a
        version conflict the whole cycle, including ``mutate``, runs again.

        Raises:
            ConcurrentUpdate: If every attempt lost a race.
        """
        for attempt in range(1, self.max_retries + 1):
            record = self.get(external_id)
            mutation = mutate(record)
            if mutation.metadata is None:
                return mutation.result
            try:
                self.write(record, mutation.metadata)
            except StaleRecordError:
                logger.info(
                    "Version conflict for %s on attempt %d/%d",
                    sanitize_identity(external_id),
                    attempt,
                    self.max_retries,
                )
                continue
            return mutation.result

        logger.warning("Giving up on %s after %d conflicting writes", sanitize_identity(external_id), self.max_retries)
        raise ConcurrentUpdate()
