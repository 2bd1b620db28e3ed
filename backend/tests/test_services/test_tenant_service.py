"""
Tests for TenantService
"""
import pytest

from shopsync.domain import CustomerData, OrderData, OrderItemData
from shopsync.services.reconciler import Reconciler
from shopsync.services.tenant_service import DuplicateTenantError, TenantNotFoundError, TenantService


class TestTenantService:

    def test_register_and_get(self, session_factory):
        service = TenantService(session_factory)

        created = service.register('initech.myshopify.com', 'shpat_x', 'Initech', 'it@initech.test')

        assert service.get(created.id) == created
        assert service.get_by_shop_domain('initech.myshopify.com').id == created.id

    def test_access_token_not_in_repr(self, tenant):
        assert 'shpat_acme_secret' not in repr(tenant)

    def test_duplicate_shop_domain(self, session_factory, tenant):
        with pytest.raises(DuplicateTenantError):
            TenantService(session_factory).register(tenant.shop_domain, 'other', 'Dup', 'dup@test')

    def test_unknown_tenant(self, session_factory):
        service = TenantService(session_factory)

        with pytest.raises(TenantNotFoundError):
            service.get(999)
        with pytest.raises(TenantNotFoundError):
            service.get_by_shop_domain('nobody.myshopify.com')
        with pytest.raises(TenantNotFoundError):
            service.rotate_access_token(999, 'token')

    def test_rotate_access_token(self, session_factory, tenant):
        service = TenantService(session_factory)

        service.rotate_access_token(tenant.id, 'shpat_rotated')

        assert service.get(tenant.id).access_token == 'shpat_rotated'

    def test_list_all(self, session_factory, tenant, other_tenant):
        assert [t.shop_domain for t in TenantService(session_factory).list_all()] == [
            'acme.myshopify.com',
            'globex.myshopify.com',
        ]

    def test_get_status_counts(self, session_factory, tenant, other_tenant):
        reconciler = Reconciler(tenant.id, session_factory)
        reconciler.reconcile_customer(CustomerData(remote_id='C1'))
        reconciler.reconcile_order(OrderData(
            remote_id='O1',
            line_items=[OrderItemData(title='A'), OrderItemData(title='B')],
        ))

        service = TenantService(session_factory)

        assert service.get_status(tenant.id) == {
            'customers': 1,
            'products': 0,
            'orders': 1,
            'order_items': 2,
            'events': 0,
        }
        assert service.get_status(other_tenant.id)['orders'] == 0
