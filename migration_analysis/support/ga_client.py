"""Wrap access to GA in a high level client with a "fetch" endpoint.

"""

from migration_analysis.ga import GA_LATENCY
from migration_analysis.support.auth import open_client, AuthFileManager
from migration_analysis.support.cache_manager import (
    cached_iterator,
    CacheManager,
)
from apiclient.errors import HttpError
from datetime import datetime, timedelta
from oauth2client.client import AccessTokenRefreshError
import logging
import os
import time


logger = logging.getLogger(__name__)

# Largest page of results GA will return for one request.
MAX_PAGE_SIZE = 10000


class GAError(Exception):
    pass


class GAClient(object):
    def __init__(self, afm, cache_manager, view_id):
        self.afm = afm
        self.cache_manager = cache_manager

        # A mapping from readable profile names to the profile ID.
        self.profile_ids = {
            'pages': 'ga:' + view_id,
        }

        # Last time that a request was made.  Used to avoid hitting GA too
        # frequently.
        self._last_request = time.time()

        # Worst sampling rate that we've seen.  None if none seen.
        # Callers of the client may reset this to None, and read it.
        self.worst_sample_rate = None

        # Time until we can trust that GA has processed the data.
        self.ga_latency = GA_LATENCY

    def service(self):
        if getattr(self, '_service', None) is None:
            self._service = open_client(self.afm)
        return self._service

    def build_ga_params(self, profile_id, start_date, end_date, kwargs):
        """Build parameters for making a call to GA.

        """
        params = dict(
            ids=profile_id,
            start_date=start_date.strftime("%Y-%m-%d"),
            end_date=end_date.strftime("%Y-%m-%d"),
            samplingLevel="HIGHER_PRECISION",
            max_results=MAX_PAGE_SIZE,
        )
        params.update(kwargs)
        return params

    def _rate_limit(self):
        """Rate limit requests by simplest possible means.

        """
        since = time.time() - self._last_request
        if since < 1:
            time.sleep(1.0 - since)
        self._last_request = time.time()

    def _check_ga_latency(self, date):
        now = datetime.now()
        if date + timedelta(days=1) + self.ga_latency > now:
            raise RuntimeError(
                "Can't reliably get data from GA for this day (%s) yet." % (
                    date.isoformat(),
                )
            )

    def _query(self, params, start_index):
        """Make a single request to GA, translating auth and HTTP errors.

        """
        self._rate_limit()
        try:
            return self.service().data().ga().get(
                start_index=start_index,
                **params
            ).execute()
        except AccessTokenRefreshError:
            logger.exception(
                "Credentials error fetching data from GA",
            )
            raise GAError("Credentials error fetching data from GA")
        except HttpError as error:
            logger.exception(
                "HTTP error fetching data from GA: %s: %s",
                error.resp.status, error._get_reason(),
            )
            raise GAError("HTTP error fetching data from GA")

    def _sample_rate(self, profile_id, resp, params):
        if not resp.get('containsSampledData'):
            return None
        sample_size = int(resp.get('sampleSize', 0))
        sample_space = int(resp.get('sampleSpace', 1))
        sample_rate = sample_size * 100.0 / sample_space
        logger.warning(
            "GA query in %r profile used sampled data (%.2f%%: %s of %s): params %r",
            profile_id,
            sample_rate, sample_size, sample_space,
            params)
        return sample_rate

    @cached_iterator
    def _fetch_from_ga(self, profile_id, start_date, end_date, name_map,
                       row_limit, kwargs):
        """Call GA with the given profile, dates and args.

        Yield an iterator of the result, stopping after row_limit rows if
        row_limit is not None.

        """
        self._check_ga_latency(end_date)
        params = self.build_ga_params(profile_id, start_date, end_date, kwargs)
        if row_limit is not None:
            params['max_results'] = min(params['max_results'], row_limit)

        start_index = 1
        while True:
            resp = self._query(params, start_index)
            sample_rate = self._sample_rate(profile_id, resp, params)
            total_results = resp['totalResults']
            if row_limit is not None:
                total_results = min(total_results, row_limit)

            headers = [
                name_map.get(header['name'][3:], header['name'][3:])
                for header in resp['columnHeaders']
            ]
            header_types = [
                {
                    'STRING': str,
                    'INTEGER': int,
                    'PERCENT': float,
                }.get(header['dataType'], str)
                for header in resp['columnHeaders']
            ]

            def makerow(row):
                ret = dict(zip(
                    headers,
                    (header_type(value)
                     for (header_type, value) in zip(header_types, row))))
                if sample_rate:
                    ret['sampled'] = sample_rate
                return ret

            rows = resp.get('rows', ())
            for row in rows:
                if start_index > total_results:
                    break
                start_index += 1
                yield makerow(row)
            logger.info(
                "Fetched %d of %d rows", start_index - 1, total_results
            )

            if start_index > total_results or not rows:
                return

    @cached_iterator
    def _fetch_totals_from_ga(self, profile_id, start_date, end_date,
                              name_map, kwargs):
        """Call GA for the totals of the given metrics over all results.

        Yields a single dict, keyed by metric name.

        """
        self._check_ga_latency(end_date)
        params = self.build_ga_params(profile_id, start_date, end_date, kwargs)
        params['max_results'] = 1

        resp = self._query(params, 1)
        sample_rate = self._sample_rate(profile_id, resp, params)
        totals = resp.get('totalsForAllResults', {})
        ret = {
            name_map.get(name[3:], name[3:]): value
            for name, value in totals.items()
        }
        if sample_rate:
            ret['sampled'] = sample_rate
        yield ret

    @staticmethod
    def _remove_time_components_from_date(date):
        return datetime(year=date.year, month=date.month, day=date.day)

    def _note_sample_rate(self, row):
        sample_rate = row.get('sampled')
        if sample_rate is not None and (
            self.worst_sample_rate is None or
            self.worst_sample_rate > sample_rate
        ):
            self.worst_sample_rate = sample_rate

    def fetch(self, profile_name, start_date, end_date, name_map=None,
              row_limit=None, **kwargs):
        """Fetch some metrics.

        :param profile_name: The textual name of the GA profile to use.
        :param start_date: The first date to fetch data for.
        :param end_date: The last date to fetch data for.
        :param name_map: A mapping from google column name to a name to return.
        :param row_limit: The most rows to return, or None to page through
        all of them.

        Any other arguments are passed to the call to GA.

        Yields a sequence of rows.  In each row, values are mapped to the
        appropriate string, integer or float datatype.

        Raises RuntimeError for data more recent than ga_latency.

        """
        if name_map is None:
            name_map = {}

        start_date = self._remove_time_components_from_date(start_date)
        end_date = self._remove_time_components_from_date(end_date)

        # Cached results are keyed on the profile ID, not the readable name,
        # so that clients for different views never share entries.
        for row in self._fetch_from_ga(
                self.profile_ids[profile_name], start_date, end_date,
                name_map, row_limit, kwargs):
            self._note_sample_rate(row)
            yield row

    def fetch_totals(self, profile_name, start_date, end_date, name_map=None,
                     **kwargs):
        """Fetch the totals of some metrics across every matching row.

        Takes the same arguments as `fetch`.  Returns a dict mapping each
        metric name to its total, as the string reported by GA.

        """
        if name_map is None:
            name_map = {}

        start_date = self._remove_time_components_from_date(start_date)
        end_date = self._remove_time_components_from_date(end_date)

        # Run the iterator to completion so that the result gets cached.
        results = list(self._fetch_totals_from_ga(
            self.profile_ids[profile_name], start_date, end_date, name_map,
            kwargs))
        if not results:
            return {}
        totals = results[0]
        self._note_sample_rate(totals)
        totals.pop('sampled', None)
        return totals


class ClientContext(object):
    def __init__(self, cache_days):
        self.cache_days = cache_days
        self.afm = None
        self.cache_manager = None

    def __enter__(self):
        assert self.afm is None
        assert self.cache_manager is None
        self.afm = AuthFileManager()
        self.afm.__enter__()
        self.afm.from_env_var(os.environ["GAAUTH"])
        self.cache_manager = CacheManager(self.cache_days)
        return GAClient(self.afm, self.cache_manager, os.environ["VIEW_ID"])

    def __exit__(self, exc, value, tb):
        self.cache_manager.cleanup()
        return self.afm.__exit__(exc, value, tb)
