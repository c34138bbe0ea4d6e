"""Shared configuration, schemas, errors, logging and HTTP client."""
