"""
Cache invalidation signals
Bump the tenant's cache version whenever data behind the dashboard changes
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import bump_tenant_cache_version

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()

# Models whose changes affect cached dashboard statistics
DASHBOARD_MODELS = {
    'Sale', 'Quotation', 'Purchase', 'Production', 'Expense',
    'Product', 'RawMaterial', 'Customer', 'Supplier',
}


@contextmanager
def suspend_cache_signals():
    """
    Temporarily suspend cache invalidation signals.
    Useful for bulk operations (import, demo seed); bump the version afterwards.
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete])
def invalidate_dashboard_cache(sender, instance, **kwargs):
    """Invalidate the tenant's dashboard cache after the change commits"""
    if is_suspended() or sender.__name__ not in DASHBOARD_MODELS:
        return

    tenant_id = getattr(instance, 'tenant_id', None)
    if tenant_id is None:
        return

    # Invalidate after commit so the cache is not refilled with stale data
    transaction.on_commit(lambda: bump_tenant_cache_version(tenant_id))
