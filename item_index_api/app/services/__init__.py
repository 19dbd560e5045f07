"""
Service layer abstraction.

Services translate between the API schemas and the item index and are
the place where mutations are logged.
"""
