"""Supporting utilities: errors, retry, files, configuration and logging."""
