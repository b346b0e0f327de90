"""
Test suite for the onboarding load-test harness.

This package contains:
- unit/: user store, coordination, decoders and load tooling
- integration/: data server API and the remote store against it
- performance/: Locust scenarios run against the wallet API
"""
