"""Exceptions raised by the yield dashboard."""


class YieldDashboardError(Exception):
    """Base class for all dashboard errors."""


class RowStoreError(YieldDashboardError):
    """Row store unreachable or the query failed."""


class RetrievalError(RowStoreError):
    """Reading reference rows failed."""


class AuditWriteError(RowStoreError):
    """Appending a prediction record failed."""


class ReferenceRowError(YieldDashboardError):
    """A reference row is missing a required field."""


class DatasetError(YieldDashboardError):
    """A static dataset file is missing or unreadable."""
