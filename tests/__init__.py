"""Test package for Second Brain.

Unit tests cover isolated logic and integration tests cover the app
served through ASGITransport.

Structure:
    - unit/: Individual function and class tests
    - integration/: HTTP endpoint and client workflow tests

The language model backend, summarizer and fetched web pages are replaced
by test doubles defined in conftest.py, so no API key or network access
is needed. Leverages pytest with pytest-check for soft assertions.
"""
