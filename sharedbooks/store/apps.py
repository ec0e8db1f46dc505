"""
SharedBooks Store - App Configuration
=====================================
Relational persistence for businesses, memberships, transactions,
settlements and the audit log.
"""

from django.apps import AppConfig


class SharedBooksStoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "sharedbooks.store"
    label = "sharedbooks_store"
    verbose_name = "SharedBooks Store"
