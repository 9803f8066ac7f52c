"""
Service layer abstraction.

Each service encapsulates the logic of one domain on top of the
backend clients.  Handlers in ``api/v1/endpoints`` stay thin: they
resolve the viewer, call a service and shape the response.
"""
