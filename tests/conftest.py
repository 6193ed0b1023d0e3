# tests/conftest.py
import os
import sys

import pytest

# pytest-dotenv has already loaded .env at this point
pp = os.getenv("PYTHONPATH")
if pp:
    for p in pp.split(os.pathsep):
        if p:
            sys.path.insert(0, p)


@pytest.fixture(autouse=True)
def _no_site_config(monkeypatch):
    # A developer's .env may point at a site config module; tests use defaults.
    monkeypatch.delenv("MOSAIC_CONFIG_MODULE", raising=False)
