"""mender-agent: turns a labeled GitHub issue into a tested fix and a pull request."""

__version__ = "0.1.0"
