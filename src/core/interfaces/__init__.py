"""Core contracts (Protocol).

Services depend on these abstractions; adapters provide the concrete
subprocess runner and terminal operator.
"""
