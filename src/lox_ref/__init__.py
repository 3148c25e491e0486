"""Tree-walking interpreter core for Lox."""

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())
