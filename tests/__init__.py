"""
Test suite for the redirect bulk uploader.

Run all tests: pytest
Run with coverage: pytest --cov=. --cov-report=html
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_redirect_import_service.py -v
"""
