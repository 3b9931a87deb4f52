import logging
import time

from django.core.management.base import BaseCommand

from inventory.services import build_reconciler

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Re-evaluate category and special item availability once, or keep doing it with --loop"

    def add_arguments(self, parser):
        parser.add_argument('--loop', action='store_true', help="Keep reconciling until interrupted")
        parser.add_argument('--interval', type=float, default=None,
                            help="Seconds between ticks (defaults to AVAILABILITY_RECONCILE_INTERVAL)")

    def handle(self, *args, **options):
        reconciler = build_reconciler(interval_seconds=options['interval'])

        if not options['loop']:
            report = reconciler.tick(wait=True)
            self.stdout.write(
                f"Checked {report.checked} entries at {report.checked_at:%Y-%m-%d %H:%M}: "
                f"{len(report.changed)} changed, {len(report.expired)} sold out expired, "
                f"{len(report.stale)} stale, "
                f"{len(report.failed)} failed"
            )
            if report.failed:
                self.stderr.write(f"Failed: {', '.join(report.failed)}")
            return

        reconciler.start()
        self.stdout.write(self.style.SUCCESS("Reconciler running, press Ctrl+C to stop"))
        try:
            # The reconciler thread is a daemon; keep the command alive until interrupted
            while reconciler.running:
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Reconcile loop interrupted")
        finally:
            reconciler.stop(timeout=5)
