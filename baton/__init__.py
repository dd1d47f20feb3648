"""Listing, metadata search, transfer and permission operations on iRODS catalog records over a caller-supplied connection."""

__version__ = "0.1.0"