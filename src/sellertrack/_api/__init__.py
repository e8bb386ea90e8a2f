"""REST endpoint modules consumed at the tracking boundary."""
