"""
XConvert - Resilient Currency Access Layer

Latest rates, point conversion and paged historical lookups on top of an
unreliable upstream rate provider, with TTL caching, retries with exponential
backoff, circuit breaking and restricted-currency filtering.
"""

__version__ = "1.0.0"
