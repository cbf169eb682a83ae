import pytest
from unittest.mock import patch

from install_rspack.logging_config import setup_logging


@pytest.fixture(autouse=True)
def fresh_logger():
    """Reset the install_rspack logger and let caplog see its records."""
    setup_logging(propagate=True)
    yield


@pytest.fixture(autouse=True)
def no_user_config():
    """Keep the developer's ~/.config/install-rspack out of every run."""
    with patch("install_rspack.config.USER_CONFIG_LOCATIONS", ()):
        yield
