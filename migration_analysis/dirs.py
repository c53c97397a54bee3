"""Define locations of directories and files to use.

 - CODE_DIR: the directory holding this package.
 - DEFAULT_CACHE_DIR: directory to cache GA responses in, unless overridden by
   the CACHE_DIR environment variable.
 - DEFAULT_SITE_URL: the site that page paths are relative to.
 - live_routes_path(): the file listing routes already served by the new
   platform.

"""
import os

CODE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

DEFAULT_CACHE_DIR = os.path.join(CODE_DIR, "cache")

DEFAULT_SITE_URL = "https://www.biglotteryfund.org.uk"

# Location of the CloudFront behaviour config within the application checkout
# pointed to by APP_DIR.
LIVE_ROUTES_RELATIVE_PATH = os.path.join("config", "cloudfront", "live.json")


def live_routes_path(environ=None):
    """Find the live routes file.

    Uses LIVE_ROUTES_PATH if set, otherwise the CloudFront config in the
    application at APP_DIR.  Returns None if neither is set.

    """
    if environ is None:
        environ = os.environ
    path = environ.get("LIVE_ROUTES_PATH")
    if path:
        return path
    app_dir = environ.get("APP_DIR")
    if app_dir:
        return os.path.join(app_dir, LIVE_ROUTES_RELATIVE_PATH)
    return None
