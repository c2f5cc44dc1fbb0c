"""
Meta functionality for the database.
"""

from .token import TokenRecord

ALL_TABLES = (TokenRecord,)
