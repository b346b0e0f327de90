"""
Unit tests for the user store, stage coordination and load tooling.

These tests run without a network: the data server is replaced by
scripted sessions and the wallet API by mock Locust clients.
"""
