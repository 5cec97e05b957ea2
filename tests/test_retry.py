"""
Retry-on-Lock Tests
====================

What we test:
    ✅ A successful unit commits once
    ✅ Lock wait timeouts (1205) and deadlocks (1213) are retried with a rollback each time
    ✅ Exhausted retries raise LockContentionError naming the operation
    ✅ Other database errors and plain exceptions are not retried
    ✅ Rolled-back attempts leave exactly one committed row on a real database
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError

from soloparent.exceptions import LockContentionError
from soloparent.models.user import Admin
from soloparent.services.retry import is_transient_lock_error, run_with_lock_retry


def lock_error(code: int = 1205) -> OperationalError:
    return OperationalError("UPDATE users SET status=%s", {}, Exception(code, "Lock wait timeout exceeded"))


class TestIsTransientLockError:

    def test_lock_wait_timeout(self):
        assert is_transient_lock_error(lock_error(1205))

    def test_deadlock(self):
        assert is_transient_lock_error(lock_error(1213))

    def test_other_driver_code(self):
        assert not is_transient_lock_error(lock_error(1062))

    def test_non_database_exception(self):
        assert not is_transient_lock_error(ValueError("boom"))


class TestRunWithLockRetry:

    @pytest.mark.asyncio
    async def test_success_commits_once(self, mock_db_session):
        unit = AsyncMock(return_value="done")

        result = await run_with_lock_retry(mock_db_session, unit, operation="testing", wait_seconds=0)

        assert result == "done"
        unit.assert_awaited_once_with(mock_db_session)
        mock_db_session.commit.assert_awaited_once()
        mock_db_session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_transient_lock_errors(self, mock_db_session):
        unit = AsyncMock(side_effect=[lock_error(1205), lock_error(1213), "done"])

        result = await run_with_lock_retry(
            mock_db_session, unit, operation="testing", attempts=3, wait_seconds=0
        )

        assert result == "done"
        assert unit.await_count == 3
        assert mock_db_session.rollback.await_count == 2
        mock_db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_lock_contention(self, mock_db_session):
        unit = AsyncMock(side_effect=lock_error())

        with pytest.raises(LockContentionError) as exc_info:
            await run_with_lock_retry(
                mock_db_session, unit, operation="updating user status", attempts=3, wait_seconds=0
            )

        assert exc_info.value.message == "Database error while updating user status. Please try again."
        assert unit.await_count == 3
        assert mock_db_session.rollback.await_count == 3

    @pytest.mark.asyncio
    async def test_non_lock_database_error_is_not_retried(self, mock_db_session):
        error = IntegrityError("INSERT", {}, Exception(1062, "Duplicate entry"))
        unit = AsyncMock(side_effect=error)

        with pytest.raises(IntegrityError):
            await run_with_lock_retry(mock_db_session, unit, operation="testing", wait_seconds=0)

        unit.assert_awaited_once()
        mock_db_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_application_error_is_rolled_back_and_raised(self, mock_db_session):
        unit = AsyncMock(side_effect=ValueError("bad input"))

        with pytest.raises(ValueError):
            await run_with_lock_retry(mock_db_session, unit, operation="testing", wait_seconds=0)

        unit.assert_awaited_once()
        mock_db_session.rollback.assert_awaited_once()
        mock_db_session.commit.assert_not_awaited()


class TestRunWithLockRetryOnDatabase:

    @pytest.mark.asyncio
    async def test_failed_attempts_leave_no_rows_behind(self, database, session):
        attempts = []

        async def add_admin(db):
            attempts.append(len(attempts) + 1)
            db.add(Admin(email="clerk@brgy.gov", password="x", barangay="San Roque"))
            await db.flush()
            if len(attempts) < 3:
                raise lock_error(1205)
            return len(attempts)

        result = await run_with_lock_retry(session, add_admin, operation="adding admin", attempts=3, wait_seconds=0)

        assert result == 3
        rows = await database.fetch_all(select(Admin.email))
        assert [row.email for row in rows] == ["clerk@brgy.gov"]
