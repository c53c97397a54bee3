import datetime
import shutil
import tempfile
import unittest
from unittest.mock import Mock, patch

from oauth2client.client import AccessTokenRefreshError

from migration_analysis.support.cache_manager import CacheManager
from migration_analysis.support.ga_client import GAClient, GAError


COLUMN_HEADERS = [
    {'name': 'ga:pagePath', 'dataType': 'STRING'},
    {'name': 'ga:uniquePageviews', 'dataType': 'INTEGER'},
]


def response(rows, total_results=None, **extra):
    resp = {
        'columnHeaders': COLUMN_HEADERS,
        'totalResults': len(rows) if total_results is None else total_results,
        'rows': rows,
    }
    resp.update(extra)
    return resp


class TestGAClient(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.cache_manager = CacheManager(30, cache_path=self.tmpdir)
        self.date = datetime.date(2020, 1, 1)

        sleep = patch('migration_analysis.support.ga_client.time.sleep')
        sleep.start()
        self.addCleanup(sleep.stop)

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def client(self, view_id, responses):
        client = GAClient(None, self.cache_manager, view_id)
        service = Mock()
        get = service.data.return_value.ga.return_value.get
        get.return_value.execute.side_effect = responses
        client._service = service
        return client, get

    def test_fetch_maps_columns(self):
        client, get = self.client('111', [
            response([['/fred', '5'], ['/wilma', '3']]),
        ])

        rows = list(client.fetch('pages', self.date, self.date))

        self.assertEqual(rows, [
            {'pagePath': '/fred', 'uniquePageviews': 5},
            {'pagePath': '/wilma', 'uniquePageviews': 3},
        ])
        params = get.call_args[1]
        self.assertEqual(params['ids'], 'ga:111')
        self.assertEqual(params['start_date'], '2020-01-01')
        self.assertEqual(params['end_date'], '2020-01-01')
        self.assertEqual(params['start_index'], 1)

    def test_fetch_applies_name_map(self):
        client, get = self.client('111', [response([['/fred', '5']])])

        rows = list(client.fetch(
            'pages', self.date, self.date,
            name_map={'pagePath': 'path', 'uniquePageviews': 'views'}))

        self.assertEqual(rows, [{'path': '/fred', 'views': 5}])

    def test_fetch_pages_through_results(self):
        client, get = self.client('111', [
            response([['/a', '5'], ['/b', '4']], total_results=3),
            response([['/c', '3']], total_results=3),
        ])

        rows = list(client.fetch('pages', self.date, self.date))

        self.assertEqual(
            [row['pagePath'] for row in rows], ['/a', '/b', '/c'])
        self.assertEqual(
            [call[1]['start_index'] for call in get.call_args_list], [1, 3])

    def test_fetch_stops_at_row_limit(self):
        client, get = self.client('111', [
            response([['/a', '5'], ['/b', '4']], total_results=5),
        ])

        rows = list(client.fetch('pages', self.date, self.date, row_limit=2))

        self.assertEqual(len(rows), 2)
        self.assertEqual(get.call_count, 1)
        self.assertEqual(get.call_args[1]['max_results'], 2)

    def test_fetch_is_cached(self):
        client, get = self.client('111', [response([['/fred', '5']])])

        first = list(client.fetch('pages', self.date, self.date))
        second = list(client.fetch('pages', self.date, self.date))

        self.assertEqual(first, second)
        self.assertEqual(get.call_count, 1)

    def test_cache_is_not_shared_between_views(self):
        site_a, get_a = self.client('111', [response([['/site-a', '5']])])
        site_b, get_b = self.client('222', [response([['/site-b', '7']])])

        rows_a = list(site_a.fetch('pages', self.date, self.date))
        rows_b = list(site_b.fetch('pages', self.date, self.date))

        self.assertEqual(rows_a, [{'pagePath': '/site-a', 'uniquePageviews': 5}])
        self.assertEqual(rows_b, [{'pagePath': '/site-b', 'uniquePageviews': 7}])
        self.assertEqual(get_b.call_count, 1)

    def test_totals_are_not_shared_between_views(self):
        site_a, _ = self.client('111', [response(
            [], totalsForAllResults={'ga:uniquePageviews': '10'})])
        site_b, _ = self.client('222', [response(
            [], totalsForAllResults={'ga:uniquePageviews': '20'})])

        self.assertEqual(
            site_a.fetch_totals('pages', self.date, self.date),
            {'uniquePageviews': '10'})
        self.assertEqual(
            site_b.fetch_totals('pages', self.date, self.date),
            {'uniquePageviews': '20'})

    def test_fetch_totals(self):
        client, get = self.client('111', [response(
            [['/fred', '5']], total_results=40,
            totalsForAllResults={'ga:uniquePageviews': '650'})])

        totals = client.fetch_totals(
            'pages', self.date, self.date,
            name_map={'uniquePageviews': 'views'},
            metrics='ga:uniquePageviews')

        self.assertEqual(totals, {'views': '650'})
        self.assertEqual(get.call_args[1]['max_results'], 1)
        self.assertEqual(get.call_args[1]['metrics'], 'ga:uniquePageviews')

    def test_fetch_totals_is_cached(self):
        client, get = self.client('111', [response(
            [], totalsForAllResults={'ga:uniquePageviews': '650'})])

        client.fetch_totals('pages', self.date, self.date)
        totals = client.fetch_totals('pages', self.date, self.date)

        self.assertEqual(totals, {'uniquePageviews': '650'})
        self.assertEqual(get.call_count, 1)

    def test_sampled_data_is_recorded(self):
        client, _ = self.client('111', [response(
            [['/fred', '5']],
            containsSampledData=True, sampleSize='50', sampleSpace='200')])

        rows = list(client.fetch('pages', self.date, self.date))

        self.assertEqual(rows[0]['sampled'], 25.0)
        self.assertEqual(client.worst_sample_rate, 25.0)

    def test_unsampled_data_leaves_sample_rate_unset(self):
        client, _ = self.client('111', [response([['/fred', '5']])])

        list(client.fetch('pages', self.date, self.date))

        self.assertIsNone(client.worst_sample_rate)

    def test_recent_data_is_refused(self):
        client, get = self.client('111', [])

        with self.assertRaises(RuntimeError):
            list(client.fetch(
                'pages', self.date, datetime.date.today()))
        self.assertEqual(get.call_count, 0)

    def test_credentials_error(self):
        client, _ = self.client('111', [AccessTokenRefreshError()])

        with self.assertLogs('migration_analysis.support.ga_client'):
            with self.assertRaises(GAError):
                list(client.fetch('pages', self.date, self.date))
