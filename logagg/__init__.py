"""logagg: merge, follow and filter lines from many log files."""
