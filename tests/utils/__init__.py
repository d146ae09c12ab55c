"""Test utilities package."""

from tests.utils.cleanup import cleanup_tenant_cascade, cleanup_user_cascade

__all__ = [
    "cleanup_tenant_cascade",
    "cleanup_user_cascade",
]
