"""Domain models and pure helpers.

Nothing here runs a subprocess or reads from the terminal.
"""
