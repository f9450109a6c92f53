"""Command-line entry point for filtering iCalendar events."""
import argparse
import json
import logging
import os
import sys
from typing import List, Optional

import requests

from processor.event_processor import EventFilter, GroupStatistics
from processor.rules import RuleParseError, parse_match_rule, parse_remove_rule
from processor.trees import MatchTree, RemoveTree
from reader.calendar_reader import CalendarReadError, CalendarReader
from writer.calendar_writer import CalendarWriter, OutputFormat, write_statistics

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_BAD_RULE = 2


class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'WARNING', log_format: str = 'text') -> None:
    """
    Configure logging on standard error.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: 'json' for structured records, anything else for text
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    if log_format == 'json':
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter('%(levelname)s %(name)s: %(message)s')
        )
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.WARNING))


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='icalfilter',
        description='Filter events from an ICAL file'
    )
    parser.add_argument(
        '-i', '--input',
        help='input file or http(s) URL, defaults to stdin'
    )
    parser.add_argument(
        '-o', '--output',
        help='output file, defaults to stdout'
    )
    parser.add_argument(
        '-I', '--include',
        action='append',
        default=[],
        metavar='RULE',
        help='include events matching this rule: [group,]PROPERTY=REGEX'
    )
    parser.add_argument(
        '-R', '--remove',
        action='append',
        default=[],
        metavar='RULE',
        help=('remove events from a group in those dates: GROUP[,START[,END]]; '
              'write negative groups as --remove=-1,...')
    )
    parser.add_argument(
        '-f', '--format',
        choices=[f.value for f in OutputFormat],
        default=OutputFormat.ICS.value,
        help='output format (default: ics)'
    )
    parser.add_argument(
        '-s', '--stats',
        action='store_true',
        help='print total hours per group to stderr'
    )
    parser.add_argument(
        '--log-level',
        default=os.environ.get('ICALFILTER_LOG_LEVEL', 'WARNING'),
        help='logging level (default: $ICALFILTER_LOG_LEVEL or WARNING)'
    )
    return parser.parse_args(argv)


def build_filter(include: List[str], remove: List[str]) -> EventFilter:
    """
    Parse rule texts into an EventFilter.

    Raises:
        RuleParseError: If any rule is malformed
    """
    match_tree = MatchTree.from_rules(parse_match_rule(r) for r in include)
    remove_tree = RemoveTree.from_rules(parse_remove_rule(r) for r in remove)
    return EventFilter(match_tree, remove_tree)


def run(
    event_filter: EventFilter,
    reader: CalendarReader,
    source: Optional[str],
    writer: CalendarWriter,
    stats: Optional[GroupStatistics] = None
) -> int:
    """
    Read, filter and write every calendar from ``source``.

    Returns:
        Number of retained events
    """
    collections = reader.read(source)
    kept = 0
    for result in event_filter.process_collections(collections, stats):
        writer.write(result)
        kept += len(result.retained)
    writer.finish()
    return kept


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the filter from the command line.

    Args:
        argv: Arguments, defaults to sys.argv[1:]

    Returns:
        Process exit code
    """
    args = parse_args(argv)

    log_format = os.environ.get('ICALFILTER_LOG_FORMAT', 'text')
    timeout_seconds = int(os.environ.get('ICALFILTER_TIMEOUT', '30'))
    setup_logging(args.log_level, log_format)

    try:
        event_filter = build_filter(args.include, args.remove)
    except RuleParseError as e:
        logger.error(f"Invalid rule: {e}")
        return EXIT_BAD_RULE

    logger.info(
        f"Loaded {len(args.include)} include rules and "
        f"{len(args.remove)} remove rules"
    )

    stats = GroupStatistics() if args.stats else None
    reader = CalendarReader(timeout=timeout_seconds)

    try:
        if args.output:
            with open(args.output, 'w', encoding='utf-8', newline='') as out:
                writer = CalendarWriter(out, OutputFormat(args.format))
                kept = run(event_filter, reader, args.input, writer, stats)
        else:
            writer = CalendarWriter(sys.stdout, OutputFormat(args.format))
            kept = run(event_filter, reader, args.input, writer, stats)
    except (CalendarReadError, requests.RequestException, OSError) as e:
        logger.error(
            f"Filtering failed: {e}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return EXIT_FAILURE

    logger.info(f"Kept {kept} events")

    if stats is not None:
        write_statistics(sys.stderr, stats.hours())

    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
