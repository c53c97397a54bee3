"""Utilities for turning page traffic data into the list of pages which still
    need migrating to reach a target share of traffic.
    Example traffic data...
    [
        ('/fred?partner=wilma', 30),
        ('/fred', 50),
        ('/barney', 20),
    ]
    Result, with a total of 100 pageviews and a target of 90%...
    AnalysisResult(
        all_results=[
            CanonicalRow('/fred?partner=wilma', '/fred', 80),
            CanonicalRow('/barney', '/barney', 20),
        ],
        replaced_pages=[],
        pages_to_replace=[
            CanonicalRow('/fred?partner=wilma', '/fred', 80),
        ],
        ...
    )
"""

from collections import namedtuple


# Legacy redirect links are keyed on their query string, so must be kept whole.
LEGACY_LINK_MARKER = '/~/link.aspx'

WILDCARD = '*'

MATCH_EXACT = 'exact'
MATCH_PREFIX = 'prefix'


CanonicalRow = namedtuple(
    'CanonicalRow', ['original_url', 'canonical_url', 'pageviews'])

AnalysisResult = namedtuple('AnalysisResult', [
    'all_results',
    'replaced_pages',
    'pages_to_replace',
    'replaced_total_pageviews',
    'replaced_percentage',
    'total_pageviews',
    'target_percentage',
])


class ParseError(ValueError):
    pass


def parse_pageviews(value):
    """Parse a pageview count, as reported by the data source, to an int.

    Only plain non-negative integers, or strings of ASCII digits, are
    accepted.

    """
    if isinstance(value, int) and not isinstance(value, bool):
        count = value
    elif isinstance(value, str) and _is_ascii_digits(value.strip()):
        count = int(value.strip(), 10)
    else:
        raise ParseError("Invalid pageview count %r" % (value,))
    if count < 0:
        raise ParseError("Negative pageview count %r" % (value,))
    return count


def _is_ascii_digits(value):
    return value.isascii() and value.isdigit()


def canonical_url(url):
    """Reduces a given URL to the key its traffic is aggregated under"""
    if LEGACY_LINK_MARKER in url:
        return url
    # Ignore query parameters
    return url.split('?', 1)[0]


def aggregate_rows(raw_rows):
    """Aggregates records in the form [URL, pageviews] into a list of
        CanonicalRow, one per canonical URL, ordered by pageviews with
        the busiest first.  The first URL seen for each canonical URL
        is kept as its original_url.
    """
    combined = {}
    for url, pageviews in raw_rows:
        pageviews = parse_pageviews(pageviews)
        key = canonical_url(url)
        item = combined.get(key)
        if item is None:
            combined[key] = [url, pageviews]
        else:
            item[1] += pageviews

    rows = [
        CanonicalRow(original, key, pageviews)
        for key, (original, pageviews) in combined.items()
    ]
    # sorted() is stable, so ties keep the order they were first seen in.
    return sorted(rows, key=lambda row: row.pageviews, reverse=True)


def limit_up_to_percentage(results, target_percentage, total_pageviews):
    """Returns the leading rows of `results` whose running total of
    pageviews, including the row itself, stays strictly below
    target_percentage of total_pageviews.

    The row which takes the running total to or past the target is not
    included.  A negative target, or a zero total, selects nothing.

    """
    # Compare count * 100 against total * target rather than dividing, so
    # that the check is exact and safe when total_pageviews is 0.
    target = total_pageviews * target_percentage
    count = 0
    selected = []
    for row in results:
        count += row.pageviews
        if count * 100 >= target:
            break
        selected.append(row)
    return selected


def live_paths(route_patterns):
    """The set of paths covered by some route patterns, wildcard removed"""
    return set(pattern.replace(WILDCARD, '', 1) for pattern in route_patterns)


def _prefixes(route_patterns):
    return tuple(
        pattern[:-len(WILDCARD)]
        for pattern in route_patterns
        if pattern.endswith(WILDCARD)
    )


def partition_by_routes(rows, route_patterns, match_mode=MATCH_EXACT):
    """Split rows into those already served by one of the route_patterns,
    and those which are not.

    Returns a (replaced_pages, pages_to_replace) tuple; both keep the order
    of `rows`.

    With MATCH_EXACT, a row is replaced if its lower-cased canonical URL is
    exactly a pattern with its wildcard removed.  With MATCH_PREFIX, patterns
    ending in a wildcard also match any URL starting with the rest of the
    pattern.

    """
    if match_mode not in (MATCH_EXACT, MATCH_PREFIX):
        raise ValueError("Unknown match mode %r" % (match_mode,))
    paths = live_paths(route_patterns)
    prefixes = _prefixes(route_patterns) if match_mode == MATCH_PREFIX else ()

    replaced_pages = []
    pages_to_replace = []
    for row in rows:
        url = row.canonical_url.lower()
        if url in paths or (prefixes and url.startswith(prefixes)):
            replaced_pages.append(row)
        else:
            pages_to_replace.append(row)
    return replaced_pages, pages_to_replace


def replaced_percentage(replaced_total_pageviews, total_pageviews):
    """Percentage of total_pageviews, rounded half up to a whole number"""
    if total_pageviews == 0:
        return 0
    return (
        (replaced_total_pageviews * 200 + total_pageviews) //
        (total_pageviews * 2)
    )


def analyse(raw_rows, target_percentage, total_pageviews, route_patterns,
            match_mode=MATCH_EXACT):
    """Work out which of the busiest pages are still to be migrated.

    :param raw_rows: [URL, pageviews] records from the data source.
    :param target_percentage: the share of total_pageviews to cover.
    :param total_pageviews: the total reported by the data source, which
    may exceed the sum of raw_rows.
    :param route_patterns: paths already served by the new platform.

    Returns an AnalysisResult.

    """
    all_results = aggregate_rows(raw_rows)
    results_up_to_target = limit_up_to_percentage(
        all_results, target_percentage, total_pageviews)
    replaced_pages, pages_to_replace = partition_by_routes(
        results_up_to_target, route_patterns, match_mode)
    replaced_total_pageviews = sum(row.pageviews for row in replaced_pages)

    return AnalysisResult(
        all_results=all_results,
        replaced_pages=replaced_pages,
        pages_to_replace=pages_to_replace,
        replaced_total_pageviews=replaced_total_pageviews,
        replaced_percentage=replaced_percentage(
            replaced_total_pageviews, total_pageviews),
        total_pageviews=total_pageviews,
        target_percentage=target_percentage,
    )
