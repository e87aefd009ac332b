"""Mirror git repositories, with their full history, from one hosting service to another."""

__version__ = "1.0.0"
