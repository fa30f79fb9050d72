"""LeakWatch services: identity, policy, report entity, lifecycle, queries and notifications."""
