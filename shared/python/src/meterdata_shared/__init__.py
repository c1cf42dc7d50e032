"""
meterdata_shared — shared configuration, constants, and models for meterdata.

Usage:
    from meterdata_shared.config import settings
    from meterdata_shared.db import get_supabase_client
    from meterdata_shared.constants import EntityKind
    from meterdata_shared.models import Meter, Reading
"""

__version__ = "0.1.0"
