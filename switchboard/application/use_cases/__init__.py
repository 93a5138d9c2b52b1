"""Use cases: thread registry, scoped message log, delivery, durable waits, workflows."""
