"""Infrastructure: storage backends, Redis, transports and security."""
