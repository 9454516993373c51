"""Core: configuration, domain models, contracts and services.

The core never imports typer; it reaches the terminal only through
`core.interfaces.operator.Operator`.
"""
