# recordgate/orm/__init__.py
"""Active-record helpers over SQLAlchemy declarative models."""

from recordgate.orm.query import RecordQuery
from recordgate.orm.record import ActiveRecordMixin, RecordCollection

__all__ = ["ActiveRecordMixin", "RecordCollection", "RecordQuery"]
