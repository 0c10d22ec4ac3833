import logging
from django.db import DatabaseError

from .exceptions import PersistenceError

logger = logging.getLogger(__name__)


class RecordStore:
    """Writes conversion outcomes to the conversion_history table."""

    def write(self, result) -> None:
        """
        Insert one row for a completed conversion.
        Raises PersistenceError when the database write fails.
        """
        from .models import ConversionRecord

        try:
            ConversionRecord.objects.create(
                amount=result.amount,
                source=result.source,
                target=result.target,
                result=result.result,
            )
        except (DatabaseError, OSError) as e:
            raise PersistenceError(f"Database Error: {e}") from e

    def save(self, result) -> bool:
        """Like write(), but a failure is logged and reported as False."""
        try:
            self.write(result)
        except PersistenceError as e:
            logger.warning("Conversion %s was not saved: %s", result, e.message)
            return False
        logger.info("Conversion saved to database: %s", result)
        return True
