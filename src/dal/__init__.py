"""Data Abstraction Layer (DAL) for catalog introspection and idempotent DDL.

Engine implementations live in ``dal.<engine>``; callers normally obtain one
through ``dal.factory.get_database_methods``. This package module imports
nothing so the schema model can use ``dal.util`` helpers without cycles.
"""
