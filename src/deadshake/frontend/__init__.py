"""Compiler front-end ports and the Python front end."""
