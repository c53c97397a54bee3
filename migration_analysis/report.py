"""Present an AnalysisResult to people.

"""

from .dirs import DEFAULT_SITE_URL
import csv
from urllib.parse import quote

# Characters left alone by javascript's encodeURI, on top of those which
# quote() never encodes.
URI_SAFE_CHARS = ";,/?:@&=+$!*'()#"


def full_url(path, base_url=DEFAULT_SITE_URL):
    """Turn a path on the site into an absolute, encoded URL"""
    return base_url + quote(path, safe=URI_SAFE_CHARS)


def summarise(analysis, start_date, end_date, base_url=DEFAULT_SITE_URL):
    """Describe an analysis, listing the pages still to replace"""
    pages = "\n".join(
        "%d. %s (%d pageviews)" % (
            i, full_url(row.canonical_url, base_url), row.pageviews)
        for i, row in enumerate(analysis.pages_to_replace, 1)
    )
    lines = [
        "Using stats from: %s - %s" % (start_date, end_date),
        "",
        "Here are the pages we have yet to replace, which will get us to "
        "%d%%:" % analysis.target_percentage,
        "",
        pages,
        "",
        "There are %d unique URLs accessed in this period." % (
            len(analysis.all_results),),
        "This covers %d total pageviews." % analysis.total_pageviews,
        "If we want to reach %d%% of pageviews, we need to replace %d "
        "pages." % (analysis.target_percentage,
                    len(analysis.pages_to_replace)),
        "We have already replaced %d pages, which gets us to %d%% "
        "already." % (len(analysis.replaced_pages),
                      analysis.replaced_percentage),
    ]
    return "\n".join(lines) + "\n"


def write_csv(rows, path, base_url=DEFAULT_SITE_URL):
    """Write (URL, pageviews) for each of rows to a new CSV file"""
    try:
        fobj = open(path, "x", newline="")
    except FileExistsError:
        raise ValueError("Output file %r already exists" % path)

    with fobj:
        writer = csv.writer(fobj)
        for row in rows:
            writer.writerow([full_url(row.canonical_url, base_url),
                             row.pageviews])
