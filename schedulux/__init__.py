"""Schedulux: availability resolution and concurrency-safe booking for storefront services"""

__version__ = "0.1.0"
