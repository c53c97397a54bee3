#!/usr/bin/env python

import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from migration_analysis.support.auth import calc_env_var
import argparse
import logging


def parse_args(argv):
    parser = argparse.ArgumentParser(
        description='Encode GA secrets for the GAAUTH environment variable.'
    )
    parser.add_argument('secrets_path',
                        type=str,
                        help='path to a service account key (credentials.json)'
                             ' or OAuth client secrets (client_secrets.json)')
    parser.add_argument('--view-id',
                        type=str,
                        help='GA view to print a VIEW_ID line for')
    options = parser.parse_args(argv[1:])
    return {
        'secrets_path': options.secrets_path,
        'view_id': options.view_id,
    }


def main(argv):
    options = parse_args(argv)
    value = calc_env_var(options['secrets_path'])
    print()
    print("GAAUTH='%s'" % (value, ))
    if options['view_id']:
        print("VIEW_ID='%s'" % (options['view_id'], ))
    return False


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main(sys.argv))
