import os
import fcntl
import json
import time
import logging
from typing import Optional, Dict

from pipeline.exceptions import BackfillJobLocked

logger = logging.getLogger(__name__)

LOCK_FILE_PREFIX = "readiness_backfill_"


class JobLock:
    """
    Exclusive, non-blocking file lock for one backfill job id.

    Keeps two invocations on the same host from driving the same job at
    once. Not a distributed lock: separate hosts must still follow the
    one-resumption-at-a-time convention.
    """
    def __init__(self, lock_dir: str, job_id: str):
        self.job_id = str(job_id)
        self.lock_file = os.path.join(lock_dir, f"{LOCK_FILE_PREFIX}{self.job_id}.lock")
        self.file_handle = None

    def acquire(self, metadata: Optional[Dict] = None) -> bool:
        """
        Attempt to acquire the lock.

        Args:
            metadata: Additional info to store (e.g., caller id)

        Returns:
            True if lock acquired, False if another process holds it.
        """
        os.makedirs(os.path.dirname(self.lock_file), exist_ok=True)
        self.file_handle = open(self.lock_file, "a+")
        try:
            fcntl.flock(self.file_handle, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            self.file_handle.close()
            self.file_handle = None
            return False

        self.file_handle.truncate(0)
        self.file_handle.seek(0)
        info = {
            "job_id": self.job_id,
            "pid": os.getpid(),
            "timestamp": time.time(),
            **(metadata or {})
        }
        json.dump(info, self.file_handle)
        self.file_handle.flush()
        return True

    def release(self):
        """Release the lock and remove its owner info."""
        if not self.file_handle:
            return
        try:
            self.file_handle.truncate(0)
            fcntl.flock(self.file_handle, fcntl.LOCK_UN)
        except OSError as e:
            logger.error(f"Error releasing backfill lock for job {self.job_id}: {e}")
        finally:
            self.file_handle.close()
            self.file_handle = None

    def get_lock_info(self) -> Optional[Dict]:
        """
        Read information about the current lock owner.
        Returns None if file doesn't exist or is empty/corrupt.
        """
        if not os.path.exists(self.lock_file):
            return None

        try:
            with open(self.lock_file, "r") as f:
                content = f.read().strip()
                if not content:
                    return None
                return json.loads(content)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read lock info: {e}")
            return None

    def __enter__(self) -> "JobLock":
        if not self.acquire():
            owner = self.get_lock_info() or {}
            raise BackfillJobLocked(
                f"Backfill job {self.job_id} is already being processed "
                f"(pid {owner.get('pid', 'unknown')}). Try again when it finishes."
            )
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
