pytest_plugins = ["ghcache.testing.conftest"]
