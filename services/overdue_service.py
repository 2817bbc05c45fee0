"""
Overdue sweeper.

Moves PENDING obligations past their due date to OVERDUE. Stateless and
idempotent; run it on a schedule or right before reading overdue figures.
"""
import logging
from datetime import date
from typing import Callable, Optional

from sqlalchemy.orm import Session

from .obligation_repository import ObligationRepository

logger = logging.getLogger(__name__)


class OverdueSweeper:

     def __init__(self, db: Session, clock: Callable[[], date] = date.today):
          self.db = db
          self.repo = ObligationRepository(db)
          self.clock = clock

     def mark_overdue(self, user_id: Optional[int] = None) -> int:
          """
          Transition every PENDING obligation with due_date < today.

          Args:
               user_id: restrict to one agency account (None = all accounts)

          Returns:
               Number of obligations transitioned
          """
          count = self.repo.mark_overdue(self.clock(), user_id)
          self.db.commit()
          if count:
               logger.info("Marked %d obligation(s) overdue", count)
          return count
