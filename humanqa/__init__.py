"""humanqa - submit human-performed QA tests and wait for the verdict."""

__version__ = "1.0.0"
