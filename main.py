import time
import logging
import signal
import sys
import argparse

from core.app_context import AppContext
from core.config_loader import load_config
from core.readiness import BackfillMode
from database.init_db import init_db
from pipeline.backfill import ReadinessBackfillEngine
from pipeline.exceptions import BackfillError
from pipeline.models import BackfillRequest, BackfillResult

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Global flag for graceful shutdown
running = True

def signal_handler(sig, frame):
    global running
    logger.info("Shutdown signal received, stopping after the current invocation")
    running = False


def log_progress(result: BackfillResult, invocation: int) -> None:
    logger.info(
        f"Invocation #{invocation}: job {result.job_id} "
        f"processed={result.processed} updated={result.updated} "
        f"skipped={result.skipped} failed={result.failed} "
        f"complete={result.is_complete} ({result.elapsed_ms} ms)"
    )
    for failure in result.failures:
        logger.warning(f"  bottle {failure['bottle_id']}: {failure['reason']}")


def drive_backfill(
    engine: ReadinessBackfillEngine,
    caller_id: str,
    request: BackfillRequest,
    until_complete: bool = False,
    max_invocations: int = 1
) -> BackfillResult:
    """
    Invoke the engine once, or repeatedly until the job completes.

    Every invocation after the first resumes the job returned by the
    previous one. Stops early on shutdown signal or after max_invocations.
    """
    result = engine.run(caller_id, request)
    invocation = 1
    log_progress(result, invocation)

    while until_complete and running and not result.is_complete:
        if invocation >= max_invocations:
            logger.warning(
                f"Reached {max_invocations} invocations; resume later with --job-id {result.job_id}"
            )
            break
        invocation += 1
        result = engine.run(caller_id, BackfillRequest(job_id=result.job_id, max_batches=request.max_batches))
        log_progress(result, invocation)

    return result


def main(argv=None):
    parser = argparse.ArgumentParser(description="Cellar readiness backfill driver")
    parser.add_argument('--caller', type=str, required=True,
                        help='Profile id of the administrator running the backfill')
    parser.add_argument('--job-id', type=str, default=None,
                        help='Resume this job instead of starting a new one')
    parser.add_argument('--mode', type=str, choices=[m.value for m in BackfillMode], default=None,
                        help='Mode for a new job (default: missing_only)')
    parser.add_argument('--batch-size', type=int, default=None,
                        help='Bottles per page for a new job')
    parser.add_argument('--max-batches', type=int, default=None,
                        help='Pages per invocation')
    parser.add_argument('--until-complete', action='store_true',
                        help='Keep invoking until the job completes')
    parser.add_argument('--init-db', action='store_true',
                        help='Create missing tables before running')
    args = parser.parse_args(argv)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    config = load_config()

    if args.init_db:
        # Initialize DB (with retry logic)
        init_db()

    ctx = AppContext.build(config)
    request = BackfillRequest(
        job_id=args.job_id,
        mode=args.mode,
        batch_size=args.batch_size,
        max_batches=args.max_batches
    )

    start = time.time()
    try:
        result = drive_backfill(
            ctx.engine,
            args.caller,
            request,
            until_complete=args.until_complete,
            max_invocations=config.backfill.max_invocations
        )
    except BackfillError as e:
        logger.error(f"Backfill refused: {e}")
        return 2
    except Exception as e:
        logger.error(f"Backfill invocation failed: {e}", exc_info=True)
        return 1

    elapsed = time.time() - start
    state = "completed" if result.is_complete else f"paused at cursor {result.next_cursor}"
    logger.info(f"=== Job {result.job_id} {state} after {elapsed:.2f}s ===")
    return 0


if __name__ == "__main__":
    sys.exit(main())
