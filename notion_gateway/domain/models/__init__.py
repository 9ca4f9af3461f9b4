"""Domain models.

Plain data: request descriptors, response outcomes, retry bookkeeping and
pagination results. No I/O happens here.
"""
