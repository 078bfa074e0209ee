"""Request-scoped services and dependencies of the HTTP surface."""
