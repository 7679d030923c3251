from django.core.management.base import BaseCommand

from apps.examinations.submission_service import SubmissionService


class Command(BaseCommand):
    help = 'Auto-submits in-progress attempts whose time has run out'

    def add_arguments(self, parser):
        parser.add_argument(
            '--grace-seconds',
            type=int,
            default=None,
            help='Extra time allowed past each deadline (defaults to AUTO_SUBMIT_GRACE_SECONDS)'
        )

    def handle(self, *args, **options):
        finalized = SubmissionService(grace_seconds=options['grace_seconds']).auto_submit_expired()

        for submission in finalized:
            self.stdout.write(
                f'Auto-submitted {submission.pk} '
                f'({submission.marks_obtained}/{submission.total_marks})'
            )
        self.stdout.write(self.style.SUCCESS(f'{len(finalized)} attempt(s) auto-submitted'))
