"""Domain Interfaces (Ports):

Defines the contracts (Abstract Base Classes) that infrastructure components
must implement. The retry and pagination logic depends on these, not on a
concrete HTTP library.
"""
