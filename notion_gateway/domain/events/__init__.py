"""Domain Event definitions.

Records of API calls, retries and fetched pages, published to the debug log.
"""
