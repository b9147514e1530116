from __future__ import annotations

from shopbot.models.tenant import Tenant
from shopbot.store.in_memory import Store


class TenantRepository:
    def __init__(self, *, store: Store) -> None:
        self.store = store

    def _tenant_key(self, tenant_id: str) -> str:
        return f"tenant:{tenant_id}"

    def _shop_key(self, shop_domain: str) -> str:
        return f"shop:{shop_domain.strip().lower()}"

    def get(self, tenant_id: str) -> Tenant | None:
        record = self.store.get(self._tenant_key(tenant_id))
        if not record:
            return None
        return Tenant.from_record(record)

    def save(self, tenant: Tenant) -> Tenant:
        self.store.set(self._tenant_key(tenant.tenant_id), tenant.to_record())
        self.store.set(self._shop_key(tenant.shop_domain), {"tenantId": tenant.tenant_id})
        return tenant

    def find_id_by_shop(self, shop_domain: str) -> str | None:
        record = self.store.get(self._shop_key(shop_domain))
        if not record:
            return None
        tenant_id = record.get("tenantId")
        return str(tenant_id) if tenant_id else None

    def list_all(self) -> list[Tenant]:
        tenants: list[Tenant] = []
        for key in self.store.keys("tenant:"):
            record = self.store.get(key)
            if record:
                tenants.append(Tenant.from_record(record))
        return tenants

    def count(self) -> int:
        return len(self.store.keys("tenant:"))
