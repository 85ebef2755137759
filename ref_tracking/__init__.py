"""
ref_tracking package initializer.
"""

from . import analytics
from . import api
from . import recorder
from . import report
from . import schema
from . import storage

__all__ = ["analytics", "api", "recorder", "report", "schema", "storage"]
