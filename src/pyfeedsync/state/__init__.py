"""Freshness policy.

Pure decisions about whether cached data may be served as-is.  Nothing in
this package performs I/O or reads the clock itself.
"""
