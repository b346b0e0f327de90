"""
Routes package for the data server.

This package contains route blueprints:
- api: JSON endpoints over the shared user list
"""
