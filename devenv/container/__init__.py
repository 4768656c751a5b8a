"""Code that runs inside the development container."""
