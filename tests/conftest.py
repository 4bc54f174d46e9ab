pytest_plugins = ["geotypes.testing.pytest"]
