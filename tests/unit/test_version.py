"""Test basic package functionality."""

import eryph_clientruntime


def test_version():
    """Test that package version is defined."""
    assert hasattr(eryph_clientruntime, "__version__")
    assert eryph_clientruntime.__version__ == "0.1.0"


def test_public_api_exported():
    """Test that every name in __all__ is importable from the package."""
    for name in eryph_clientruntime.__all__:
        assert hasattr(eryph_clientruntime, name), name
