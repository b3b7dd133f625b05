"""
External system integrations (TMDb).

Remote metadata clients live under this namespace so the pipeline stages can
depend on the `MetadataClient` protocol instead of a concrete transport.
"""
