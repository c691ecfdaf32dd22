"""Infrastructure Layer.

Adapters that perform file I/O and return domain Value Objects.
"""
