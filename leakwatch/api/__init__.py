"""LeakWatch HTTP API."""
