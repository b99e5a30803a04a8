"""
Geospatial helpers: geohash proximity keys and travel estimates.

Kept free of database and framework imports so models and services can
both depend on it.
"""
