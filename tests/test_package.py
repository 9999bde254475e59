"""Basic package tests to verify installation."""


def test_package_imports() -> None:
    """Verify the main package can be imported."""
    import serielookup

    assert serielookup.__version__


def test_config_module_imports() -> None:
    """Verify config module structure is correct."""
    from serielookup.config import (
        DatasetConfig,
        LookupConfig,
        ParsingConfig,
        QueryConfig,
        RetrievalConfig,
        load_config,
    )

    assert DatasetConfig is not None
    assert LookupConfig is not None
    assert ParsingConfig is not None
    assert QueryConfig is not None
    assert RetrievalConfig is not None
    assert load_config is not None


def test_lookup_module_imports() -> None:
    """Verify lookup module structure is correct."""
    from serielookup.lookup import (
        ConsoleReporter,
        LoadReport,
        LookupResult,
        LookupService,
        count_by_class,
        lookup,
    )

    assert ConsoleReporter is not None
    assert LoadReport is not None
    assert LookupResult is not None
    assert LookupService is not None
    assert count_by_class is not None
    assert lookup is not None
