"""FileUpload - single-file HTTP upload service."""

__version__ = "0.1.0"
