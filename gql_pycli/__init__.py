"""Command-line GraphQL client core.

Builds GraphQL requests from a live schema and terse command-line intent,
then executes them over HTTP.
"""

import logging

__version__ = "0.1.0"

log = logging.getLogger("gql_pycli")
log.addHandler(logging.NullHandler())
