"""
Management command to render a markdown file with line age bars.

The file is blamed with git, rendered through the markdown pipeline and the
resulting HTML is written to stdout or to --output.
"""

from pathlib import Path

from dateutil import parser as date_parser
from django.core.exceptions import ImproperlyConfigured
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from lineage.markdown.renderer import render_markdown
from lineage.markers import MARKER_CODECS
from lineage.utils import summarize_line_ages


class Command(BaseCommand):
    help = 'Render a markdown file to HTML with line age bars from git blame'

    def add_arguments(self, parser):
        parser.add_argument(
            'path',
            type=str,
            help='Markdown file to render',
        )
        parser.add_argument(
            '--output',
            type=str,
            help='Write the HTML to this file instead of stdout',
        )
        parser.add_argument(
            '--repository-root',
            type=str,
            help='Directory git blame runs in (default: LINE_AGE_REPOSITORY_ROOT or the current directory)',
        )
        parser.add_argument(
            '--as-of',
            type=str,
            help='Compute ages as of this date instead of now (e.g. "2024-01-31")',
        )
        parser.add_argument(
            '--max-age-days',
            type=float,
            help='Age in days at which lines reach the old color',
        )
        parser.add_argument(
            '--marker-syntax',
            type=str,
            choices=sorted(MARKER_CODECS),
            help='Line marker syntax used while rendering',
        )
        parser.add_argument(
            '--stats',
            action='store_true',
            help='Show line age statistics after rendering',
        )

    def handle(self, *args, **options):
        path = Path(options['path'])
        if not path.is_file():
            raise CommandError(f'File not found: {path}')

        overrides = {}
        if options.get('max_age_days') is not None:
            overrides['max_age_days'] = options['max_age_days']
        if options.get('marker_syntax'):
            overrides['marker_syntax'] = options['marker_syntax']

        context = {
            'file_path': str(path.resolve()),
            'repository_root': options.get('repository_root'),
            'line_age': overrides,
        }

        if options.get('as_of'):
            try:
                as_of = date_parser.parse(options['as_of'])
            except (ValueError, OverflowError) as e:
                raise CommandError(f"Invalid --as-of date {options['as_of']!r}: {e}")
            if timezone.is_naive(as_of):
                as_of = timezone.make_aware(as_of)
            context['now'] = as_of

        try:
            html = render_markdown(path.read_text(encoding='utf-8'), context)
        except ImproperlyConfigured as e:
            raise CommandError(str(e))

        output = options.get('output')
        if output:
            Path(output).write_text(html, encoding='utf-8')
            self.stdout.write(self.style.SUCCESS(f'Wrote {output}'))
        else:
            self.stdout.write(html)

        if options.get('stats'):
            self._show_stats(context.get('line_ages') or {})

    def _show_stats(self, line_ages):
        stats = summarize_line_ages(line_ages)

        if not stats['lines']:
            self.stdout.write(
                self.style.WARNING('No git blame data available (file may not be committed)')
            )
            return

        self.stdout.write(f"Annotated lines: {stats['lines']}")
        self.stdout.write(f"  Average age: {stats['average_age']:.1f} days")
        self.stdout.write(f"  Oldest line: {stats['oldest_age']:.1f} days")
        self.stdout.write(f"  Newest line: {stats['newest_age']:.1f} days")
