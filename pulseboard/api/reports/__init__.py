"""Report query API resources."""
