"""System remote modules for backend servers."""
