# Overview: Optimistic-concurrency helpers shared by services that rewrite records.

from __future__ import annotations

import time

from sqlalchemy.orm.exc import StaleDataError

from ..errors import VersionConflictError
from ..extensions import db


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.01):
    """
    Execute a read-compute-conditional-write operation, retrying on conflict.

    Retries only on version conflicts: VersionConflictError (explicit
    expected-version mismatch) and StaleDataError (version_id_col mismatch
    detected at flush). Any other failure propagates on the first attempt.
    After the last attempt the conflict surfaces as VersionConflictError.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (VersionConflictError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                break
            time.sleep(backoff_base * (2 ** attempt))

    if isinstance(last_exc, VersionConflictError):
        raise last_exc
    raise VersionConflictError(
        "Record was modified concurrently",
        details={"attempts": attempts},
    ) from last_exc
