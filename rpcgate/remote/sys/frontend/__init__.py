"""System remote modules for frontend servers."""
