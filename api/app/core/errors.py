class ConfigurationError(RuntimeError):
    """The server is missing configuration it needs to serve a request."""
