"""Handle authentication with google.

Two kinds of secrets can be used to read from GA:

 - a service account key ("credentials.json"), as downloaded from the google
   developers console for a service account which has been given read access
   to the GA view.  No interaction is needed to use this.
 - an OAuth client secrets file ("client_secrets.json") for an installed
   application.  The first use performs the oauth flow, which asks a person to
   visit a URL and paste back a code; the resulting tokens are kept in
   "storage.json".

Either way, the secrets are kept out of the working tree by holding them in a
temporary directory, which can be serialised to and from a base-64 encoded
string suitable for the GAAUTH environment variable.

For auth setup, call `calc_env_var` with the path to either kind of file.  The
script in `scripts/setup_auth.py` does this.

For creating a client, make an AuthFileManager and enter its context, populate
it with `AuthFileManager.from_env_var()`, and then call `open_client`.  The
client will be valid until the AuthFileManager context is exited:

    with AuthFileManager() as afm:
        afm.from_env_var(os.environ["GAAUTH"])
        service = open_client(afm)
        # Use the service in this context

"""

from migration_analysis.support.utils import (
    base64_decode,
    base64_encode,
    to_json,
)
from apiclient.discovery import build
from oauth2client.client import flow_from_clientsecrets
from oauth2client.file import Storage
from oauth2client.service_account import ServiceAccountCredentials
import httplib2
import json
import logging
import oauth2client.tools
import os
import stat
import tempfile
import zlib


logger = logging.getLogger(__name__)

READONLY_SCOPE = "https://www.googleapis.com/auth/analytics.readonly"

SERVICE_ACCOUNT_KEY = "credentials.json"
CLIENT_SECRETS_KEY = "client_secrets.json"
STORAGE_KEY = "storage.json"


class AuthFileManager(object):
    """Manage a set of authentication files.

    Returns paths to the files, and more importantly, ensures that they're
    deleted after use.  Works as a context manager.

    """
    def __init__(self):
        self.entered = False
        self.base_path = tempfile.mkdtemp(prefix='ga_analytics')
        # Make sure only the current user can access the tmpdir
        os.chmod(self.base_path, stat.S_IRWXU)

    def __enter__(self):
        self.paths = {}
        self.entered = True
        return self

    def __exit__(self, exc, value, tb):
        self.entered = False
        while self.paths:
            key, path = self.paths.popitem()
            if os.path.exists(path):
                try:
                    os.unlink(path)
                except OSError as e:
                    logger.error("Couldn't clean up %r: %s", path, e)
        os.rmdir(self.base_path)
        return False

    def _check_entered(self):
        if not self.entered:
            raise RuntimeError("Not in AuthFileManager context")

    def path(self, key):
        self._check_entered()
        if key in self.paths:
            return self.paths[key]
        path = os.path.join(self.base_path, key)
        self.paths[key] = path
        return path

    def has_data(self, key):
        self._check_entered()
        return key in self.paths and os.path.exists(self.paths[key])

    def data(self, key):
        self._check_entered()
        with open(self.path(key), 'r') as fobj:
            return json.loads(fobj.read())

    def set_data(self, key, value):
        with open(self.path(key), 'w') as fobj:
            fobj.write(to_json(value))

    def to_env_var(self):
        """Serialise every stored file which exists"""
        self._check_entered()
        value = [
            [key, self.data(key)]
            for key in sorted(self.paths.keys())
            if self.has_data(key)
        ]
        compressed = zlib.compress(to_json(value).encode('utf-8'), 9)
        return base64_encode(compressed).decode('ascii')

    def from_env_var(self, value):
        self._check_entered()
        decoded = zlib.decompress(base64_decode(value)).decode('utf-8')
        for key, data in json.loads(decoded):
            self.set_data(key, data)


def is_service_account(secrets):
    return secrets.get('type') == 'service_account'


def calc_env_var(secrets_path):
    """Calculate an environment variable value holding auth information.

    Accepts either a service account key or OAuth client secrets.  For client
    secrets, performs the initial auth flow so that the resulting tokens are
    included too.

    """
    with open(secrets_path, "r") as fobj:
        secrets = json.load(fobj)
    with AuthFileManager() as afm:
        if is_service_account(secrets):
            afm.set_data(SERVICE_ACCOUNT_KEY, secrets)
        else:
            afm.set_data(CLIENT_SECRETS_KEY, secrets)
        open_client(afm)
        return afm.to_env_var()


def service_account_credentials(afm):
    return ServiceAccountCredentials.from_json_keyfile_name(
        afm.path(SERVICE_ACCOUNT_KEY),
        scopes=[READONLY_SCOPE],
    )


def installed_app_credentials(afm):
    storage = Storage(afm.path(STORAGE_KEY))
    credentials = storage.get()
    if credentials is None or credentials.invalid:
        logger.info("No stored GA tokens; starting the oauth flow")
        flow = flow_from_clientsecrets(
            afm.path(CLIENT_SECRETS_KEY),
            scope=READONLY_SCOPE,
        )
        # Prevent oauth2client from trying to open a browser; this may be run
        # somewhere without one.
        flags = oauth2client.tools.argparser.parse_args(
            ['--noauth_local_webserver'])
        credentials = oauth2client.tools.run_flow(flow, storage, flags)
    return credentials


def open_client(afm):
    """Open a GA Core Reporting API service.

    :param afm: an AuthFileManager holding either a service account key or
    client secrets.

    """
    if afm.has_data(SERVICE_ACCOUNT_KEY):
        credentials = service_account_credentials(afm)
    elif afm.has_data(CLIENT_SECRETS_KEY):
        credentials = installed_app_credentials(afm)
    else:
        raise RuntimeError("No GA secrets found in GAAUTH")

    return build(
        'analytics', 'v3',
        http=credentials.authorize(httplib2.Http()),
        cache_discovery=False,
    )
