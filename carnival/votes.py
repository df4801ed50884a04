from __future__ import annotations

import logging

from sqlalchemy import update
from sqlmodel import Session, select

from .database import Submission, store_guard
from .errors import SubmissionNotFoundError

logger = logging.getLogger(__name__)


class VoteTally:
    """Applies votes (and photo likes) to a submission's counter."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def increment(self, submission_id: int) -> int:
        """Add one vote and return the count as of this vote.

        The bump is computed by the database (``vote_count + 1``) rather than
        written back from a value read earlier, so concurrent voters never
        overwrite each other. The read-back runs inside the same transaction
        while the row is still locked by our update.
        """
        with store_guard(self.session, "increment"):
            result = self.session.exec(
                update(Submission)
                .where(Submission.id == submission_id)
                .values(vote_count=Submission.vote_count + 1)
                .execution_options(synchronize_session=False)
            )
            if not result.rowcount:
                self.session.rollback()
                raise SubmissionNotFoundError(submission_id)
            count = self.session.exec(
                select(Submission.vote_count).where(Submission.id == submission_id)
            ).one()
            self.session.commit()
        logger.debug("Submission %s now has %d votes", submission_id, count)
        return count
