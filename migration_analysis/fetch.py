from .analysis import analyse, MATCH_EXACT, MATCH_PREFIX
from .ga import GAData
from .report import summarise, write_csv
from .routes import LiveRoutes
import logging


logger = logging.getLogger(__name__)


def run(start_date, end_date, target_percentage, csv_path=None,
        prefix_match=False):
    # Only needed when talking to GA, and pulls in the google client libraries.
    from .support.ga_client import ClientContext

    routes = LiveRoutes.from_environment()
    match_mode = MATCH_PREFIX if prefix_match else MATCH_EXACT

    with ClientContext(cache_days=30) as client:
        analysis = fetch_analysis(
            client,
            start_date,
            end_date,
            routes.patterns(),
            target_percentage,
            match_mode,
        )

    print(summarise(analysis, start_date, end_date))

    if csv_path is not None:
        write_csv(analysis.pages_to_replace, csv_path)
        logger.info("Results written to %s", csv_path)
    return analysis


def fetch_analysis(ga_client, start_date, end_date, route_patterns,
                   target_percentage, match_mode=MATCH_EXACT):
    """Fetches page traffic for a date range and analyses it.

    :param route_patterns: A list of path patterns for routes which have
    already been migrated.

    Returns an AnalysisResult covering every page viewed in the date range.

    """
    data = GAData(ga_client, start_date, end_date)
    rows, total_pageviews = data.fetch_rows()
    logger.info(
        "Fetched %d rows covering %d pageviews", len(rows), total_pageviews
    )
    return analyse(
        rows,
        target_percentage,
        total_pageviews,
        route_patterns,
        match_mode,
    )
