"""Theme park ride status watcher."""
