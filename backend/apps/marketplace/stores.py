"""
Organization and user stores.

The reconciler talks to persistence only through the OrganizationStore and
UserStore protocols: find_one, find and find_one_and_update (upsert). Each
backend implements both; MARKETPLACE_STORE_BACKEND picks one at startup.
"""

import threading
from enum import Enum
from functools import lru_cache
from typing import Any, Protocol

from django.core.exceptions import ImproperlyConfigured
from django.db import IntegrityError, models, transaction

from apps.accounts.models import User
from apps.marketplace.schemas import OrganizationRecord, Subscription, UserRecord
from apps.organizations.models import Organization
from config.settings.base import settings


class OrganizationStore(Protocol):
    def find_one(self, **filters: Any) -> OrganizationRecord | None: ...

    def find(self, **filters: Any) -> list[OrganizationRecord]: ...

    def find_one_and_update(
        self, filters: dict[str, Any], patch: dict[str, Any]
    ) -> OrganizationRecord: ...


class UserStore(Protocol):
    def find_one(self, **filters: Any) -> UserRecord | None: ...

    def find(self, **filters: Any) -> list[UserRecord]: ...

    def find_one_and_update(self, filters: dict[str, Any], patch: dict[str, Any]) -> UserRecord: ...


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _as_subscriptions(items: list) -> list[Subscription]:
    return [s if isinstance(s, Subscription) else Subscription.model_validate(s) for s in items]


# Django ORM backend


class DjangoStore:
    """
    Upsert semantics on top of a Django model.

    find_one_and_update locks the matching row for the duration of the update;
    when no row matches it inserts one, falling back to updating the winner if
    a concurrent insert beats it to the unique constraint.
    """

    model: type[models.Model]

    def to_record(self, instance: Any) -> Any:
        raise NotImplementedError

    def to_fields(self, patch: dict[str, Any]) -> dict[str, Any]:
        return {key: _plain(value) for key, value in patch.items()}

    def _queryset(self, filters: dict[str, Any]) -> models.QuerySet:
        # Oldest row is the canonical one if duplicates ever exist
        return self.model.objects.filter(**filters).order_by("created_at", "pk")

    def find_one(self, **filters: Any) -> Any:
        instance = self._queryset(filters).first()
        return self.to_record(instance) if instance is not None else None

    def find(self, **filters: Any) -> list:
        return [self.to_record(instance) for instance in self._queryset(filters)]

    def find_one_and_update(self, filters: dict[str, Any], patch: dict[str, Any]) -> Any:
        fields = self.to_fields(patch)
        with transaction.atomic():
            instance = self._queryset(filters).select_for_update().first()
            if instance is None:
                try:
                    with transaction.atomic():
                        instance = self.model.objects.create(**{**filters, **fields})
                    return self.to_record(instance)
                except IntegrityError:
                    # Concurrent insert won the race, update the winner
                    instance = self._queryset(filters).select_for_update().get()

            for key, value in fields.items():
                setattr(instance, key, value)
            instance.save(update_fields=[*fields, "updated_at"])
        return self.to_record(instance)


class DjangoOrganizationStore(DjangoStore):
    model = Organization

    def to_record(self, instance: Organization) -> OrganizationRecord:
        return OrganizationRecord(
            tenant_id=instance.tenant_id,
            name=instance.name,
            subscriptions=_as_subscriptions(instance.subscriptions or []),
        )

    def to_fields(self, patch: dict[str, Any]) -> dict[str, Any]:
        fields = super().to_fields(patch)
        if "subscriptions" in fields:
            fields["subscriptions"] = [
                s.to_document() for s in _as_subscriptions(fields["subscriptions"])
            ]
        return fields


class DjangoUserStore(DjangoStore):
    model = User

    def to_record(self, instance: User) -> UserRecord:
        return UserRecord(
            tenant_id=instance.tenant_id,
            user_id=instance.user_id,
            upn=instance.upn,
            role=instance.role,
            license=instance.license,
            subscription_id=instance.subscription_id,
        )


# In-memory backend


class InMemoryStore:
    """
    Process-local store for tests and local development.

    Records handed out are copies; mutating them does not touch the store.
    """

    record_type: type[OrganizationRecord] | type[UserRecord]

    def __init__(self) -> None:
        self._rows: list = []
        self._lock = threading.Lock()

    @staticmethod
    def _matches(row: Any, filters: dict[str, Any]) -> bool:
        return all(getattr(row, key) == _plain(value) for key, value in filters.items())

    def apply(self, row: Any, patch: dict[str, Any]) -> Any:
        update = {key: _plain(value) for key, value in patch.items()}
        return row.model_copy(update=update, deep=True)

    def find_one(self, **filters: Any) -> Any:
        with self._lock:
            for row in self._rows:
                if self._matches(row, filters):
                    return row.model_copy(deep=True)
        return None

    def find(self, **filters: Any) -> list:
        with self._lock:
            return [row.model_copy(deep=True) for row in self._rows if self._matches(row, filters)]

    def find_one_and_update(self, filters: dict[str, Any], patch: dict[str, Any]) -> Any:
        with self._lock:
            for index, row in enumerate(self._rows):
                if self._matches(row, filters):
                    updated = self.apply(row, patch)
                    self._rows[index] = updated
                    return updated.model_copy(deep=True)

            seed = self.record_type(**{key: _plain(value) for key, value in filters.items()})
            created = self.apply(seed, patch)
            self._rows.append(created)
            return created.model_copy(deep=True)


class InMemoryOrganizationStore(InMemoryStore):
    record_type = OrganizationRecord

    def apply(self, row: OrganizationRecord, patch: dict[str, Any]) -> OrganizationRecord:
        patch = dict(patch)
        if "subscriptions" in patch:
            patch["subscriptions"] = _as_subscriptions(patch["subscriptions"])
        return super().apply(row, patch)


class InMemoryUserStore(InMemoryStore):
    record_type = UserRecord


STORE_BACKENDS: dict[str, tuple[type, type]] = {
    "django": (DjangoOrganizationStore, DjangoUserStore),
    "memory": (InMemoryOrganizationStore, InMemoryUserStore),
}


@lru_cache(maxsize=None)
def get_stores(backend: str | None = None) -> tuple[OrganizationStore, UserStore]:
    """
    Get the (organization, user) store pair for a backend.

    Cached so the memory backend keeps its rows for the life of the process.
    """
    backend = backend or settings.MARKETPLACE_STORE_BACKEND
    try:
        organization_store_class, user_store_class = STORE_BACKENDS[backend]
    except KeyError:
        raise ImproperlyConfigured(
            f"Unknown MARKETPLACE_STORE_BACKEND {backend!r}; "
            f"expected one of {sorted(STORE_BACKENDS)}"
        ) from None
    return organization_store_class(), user_store_class()
