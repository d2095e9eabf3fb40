"""
campus_shared — shared configuration, database access and models for campus-eav.

Usage:
    from campus_shared.config import settings
    from campus_shared.db import get_connection_pool
    from campus_shared.models import AttributeDefinition, DataType, Entity
    from campus_shared.time_utils import parse_datetime
"""

__version__ = "0.1.0"
