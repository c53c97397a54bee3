"""Provide access to google analytics data on page views.

    Example data...
    [
        {
            'path': '/fred?partner=wilma',
            'views': 100,
        },
        {
            'path': '/fred',
            'views': 200,
        },
        {
            'path': '/wilma',
            'views': 200,
        }
    ]

    Result...
    (
        [
            ('/fred?partner=wilma', 100),
            ('/fred', 200),
            ('/wilma', 200)
        ],
        500
    )
"""

from .analysis import parse_pageviews
import datetime

# GA's own limit on rows per query, which the analysis was designed around.
DEFAULT_ROW_LIMIT = 10000

# Time until we can trust that GA has processed a day's data.
GA_LATENCY = datetime.timedelta(hours=4)


def latest_complete_date(now):
    """The most recent day which GA has finished processing at `now`"""
    return (now - GA_LATENCY).date() - datetime.timedelta(days=1)


class GAData():
    """Gets page view data for a date range via the Google API"""
    def __init__(self, ga_client, start_date, end_date,
                 row_limit=DEFAULT_ROW_LIMIT):
        self.client = ga_client
        self.start_date = start_date
        self.end_date = end_date
        self.row_limit = row_limit

    def query_params(self):
        return dict(
            metrics='ga:uniquePageviews',
            dimensions='ga:pagePath',
            sort='-ga:uniquePageviews',
            # PDFs are not being migrated
            filters='ga:pagePath!@.pdf',
        )

    def fetch_rows(self):
        """Fetch views of pages.

        Returns a tuple of:

         - a list of (path, views) pairs, busiest first, as reported by GA.
         - the total number of views over all pages, which can be higher than
           the sum of views in the list if GA returned fewer rows than match.

        """
        rows = [
            (row['path'], row['views'])
            for row in self.get_traffic_from_api()
        ]
        return rows, self.get_total_from_api()

    def get_traffic_from_api(self):
        """Searches the Google API for page view data and returns
            all matching rows.
        """
        return self.client.fetch(
            'pages', self.start_date, self.end_date,
            name_map={
                'uniquePageviews': 'views',
                'pagePath': 'path',
            },
            row_limit=self.row_limit,
            **self.query_params()
        )

    def get_total_from_api(self):
        """Searches the Google API for the total number of page views"""
        totals = self.client.fetch_totals(
            'pages', self.start_date, self.end_date,
            name_map={'uniquePageviews': 'views'},
            **self.query_params()
        )
        return parse_pageviews(totals.get('views', 0))
