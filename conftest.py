# Ensure tests import the flareproxy package from this checkout first.
import os
import sys

import pytest

SERVICE_ROOT = os.path.dirname(__file__)

if SERVICE_ROOT not in sys.path:
    sys.path.insert(0, SERVICE_ROOT)

from flareproxy.utils_tests.stub_translator import StubTranslator  # noqa: E402


@pytest.fixture
def stub_translator():
    """Translator double with a call counter; succeeds with a fixed page by default."""
    return StubTranslator()
