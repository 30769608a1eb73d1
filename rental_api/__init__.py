"""
Party Rental Operations API

Order pricing, payment capture, order status rules and template-driven
field task generation for a bounce house rental business, backed by
PostgreSQL.
"""

__version__ = "0.1.0"
