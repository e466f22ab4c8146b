"""
apimock - mock HTTP server engine for API testing.

Users define mock configurations made of ordered routes; incoming requests are
matched against them and answered with templated responses.
"""

__version__ = '1.0.0'
