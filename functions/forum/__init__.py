"""
Questions service package.

Provides the FastAPI application, the storage backends that persist the
questions document, and the store engine that runs read-modify-write cycles
over them.
"""
