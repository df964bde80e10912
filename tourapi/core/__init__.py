"""Configuration, storage, errors and observability shared by the API."""
