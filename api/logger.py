"""
Logging setup shared by the API modules.

Vercel (like Lambda) collects whatever the function writes to stdout,
so the root logger gets a single stdout handler at LOG_LEVEL.
"""

import logging
import os
import sys


LOG_FORMAT = '%(asctime)s %(levelname)-7s %(name)s: %(message)s'


def get_logger(name: str = '') -> logging.Logger:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(stream=sys.stdout, format=LOG_FORMAT)
    root.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())
    return logging.getLogger(name)
