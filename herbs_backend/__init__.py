"""
Backend package for the Herbs Dashboard admin API.

A FastAPI service over a MongoDB document store and an S3-compatible asset
host, with in-memory stand-ins for both used in development and tests.
"""
