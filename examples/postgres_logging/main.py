"""Example worker logging warnings and errors to PostgreSQL.

Run with a reachable database, e.g.:

    ANSILOG_POSTGRES__LEVEL=WARN \
    ANSILOG_POSTGRES__DSN=postgresql://postgres@localhost/app \
    ANSILOG_POSTGRES__CREATE_TABLE=true \
    python examples/postgres_logging/main.py
"""

from __future__ import annotations

import random

from ansilog import configure


def main() -> None:
    setup = configure()
    logger = setup.logger
    try:
        for job_id in range(20):
            duration = random.uniform(0.1, 3.0)
            if duration > 2.5:
                logger.error("job failed", extra={"job_id": job_id})
            elif duration > 1.5:
                logger.warning(
                    "job slow", extra={"job_id": job_id, "seconds": duration}
                )
            else:
                logger.info("job done", extra={"job_id": job_id})
        # Console only; never persisted
        logger.warning("heartbeat", extra={"ignore": True})
    finally:
        # Records still queued are committed here
        setup.close()


if __name__ == "__main__":
    main()
