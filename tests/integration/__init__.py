"""
Integration tests for the data server.

Tests use the Flask test client over a per-test JSON file and
demonstrate:
- Endpoint contract testing
- Input validation testing
- Persistence between requests
- The remote store talking to a real data server app
"""
