"""Storage and backup layer.

This module persists live tables and immutable backups in an embedded
database. It powers CRUD, row mutation, restore, and auto-backup for the SDK.
"""
