"""
Handlers: the CRUD/DDL/transaction surface over one backend.
"""
from dbaccess.handlers.base import BaseHandler as BaseHandler
from dbaccess.handlers.confined import ThreadConfinedHandler as ThreadConfinedHandler
from dbaccess.handlers.pooled import PooledHandler as PooledHandler
