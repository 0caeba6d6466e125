"""Concrete implementations of the querycache interfaces.

- ``mongo`` -- pymongo-backed executor, resolver and connection manager.
- ``memory`` -- in-process collection store for development and tests.
"""
