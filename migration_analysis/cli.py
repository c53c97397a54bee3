"""Command line handling for scripts/analyse.py.

"""

from .fetch import run as run_analysis
from .ga import latest_complete_date
import argparse
import datetime
import logging


logger = logging.getLogger(__name__)

DEFAULT_PERCENTAGE = 80
DEFAULT_DAYS = 30


def parse_date(value, default):
    """Parse a YYYY-MM-DD date, falling back to default if invalid"""
    if value:
        try:
            return datetime.datetime.strptime(value, "%Y-%m-%d").date()
        except ValueError:
            logger.warning("Ignoring invalid date %r", value)
    return default


def parse_args(argv, now=None):
    """Parse the command line into keyword arguments for `fetch.run`.

    Missing or invalid dates default to the 30 days up to yesterday.  Before
    GA has finished processing yesterday, the end date defaults to the day
    before instead.

    """
    if now is None:
        now = datetime.datetime.now()
    parser = argparse.ArgumentParser(
        description='Find the busiest pages still to be migrated.'
    )
    parser.add_argument('-s', '--start',
                        type=str,
                        help='date to start the lookup from (YYYY-MM-DD)')
    parser.add_argument('-e', '--end',
                        type=str,
                        help='date to end the lookup at (YYYY-MM-DD)')
    parser.add_argument('--percentage',
                        type=int, default=DEFAULT_PERCENTAGE,
                        help='target percentage of traffic to reach')
    parser.add_argument('--csv',
                        type=str, dest='csv_path',
                        help='path to write the pages to replace to, as CSV')
    parser.add_argument('--prefix-match',
                        action='store_true',
                        help='treat wildcard routes as matching every path '
                             'beneath them')
    options = parser.parse_args(argv[1:])
    return {
        'start_date': parse_date(
            options.start,
            now.date() - datetime.timedelta(days=DEFAULT_DAYS)),
        'end_date': parse_date(options.end, latest_complete_date(now)),
        'target_percentage': options.percentage,
        'csv_path': options.csv_path,
        'prefix_match': options.prefix_match,
    }


def main(argv, run=run_analysis):
    options = parse_args(argv)
    try:
        run(**options)
    except Exception:
        logger.exception("Analysis failed")
        return True
    return False
