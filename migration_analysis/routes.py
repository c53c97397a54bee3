"""Look up the routes which are already served by the new platform.

    The routes are read from the CloudFront behaviour config of the new
    application, which is a JSON list such as...
    [
        {"PathPattern": "/funding/programmes*", ...},
        {"PathPattern": "/about", ...}
    ]
"""

from .dirs import live_routes_path
import json
import logging


logger = logging.getLogger(__name__)


class RouteRegistryError(Exception):
    pass


class LiveRoutes():
    """Route patterns from a live routes file"""
    def __init__(self, path):
        self.path = path

    @classmethod
    def from_environment(cls, environ=None):
        path = live_routes_path(environ)
        if path is None:
            raise RouteRegistryError(
                "Set LIVE_ROUTES_PATH or APP_DIR to locate the live routes")
        return cls(path)

    def patterns(self):
        """Returns the list of path patterns, in the order listed"""
        logger.info("Loading live routes from %s", self.path)
        try:
            with open(self.path) as fobj:
                routes = json.load(fobj)
        except (IOError, ValueError) as error:
            raise RouteRegistryError(
                "Couldn't read live routes from %r: %s" % (self.path, error))

        if not isinstance(routes, list):
            raise RouteRegistryError(
                "Expected a list of routes in %r" % (self.path,))
        try:
            patterns = [route['PathPattern'] for route in routes]
        except (KeyError, TypeError):
            raise RouteRegistryError(
                "Route without a PathPattern in %r" % (self.path,))
        logger.info("Loaded %d live routes", len(patterns))
        return patterns
