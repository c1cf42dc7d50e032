"""meterdata_api — FastAPI service exposing the CSV upload routes."""

__version__ = "0.1.0"
