"""
Unit Test Layer Configuration

Structure:
    tests/unit/
    └── campaign/    View math, validation, form state, legacy records

Usage:
    pytest tests/unit -v
    pytest tests/unit -m unit -v
"""


def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
