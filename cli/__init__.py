"""CLI package for polling and feeding the sensor relay service."""
