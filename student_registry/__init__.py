"""
Student registry service.

A FastAPI application that stores one field-map per student in a key-value
store (DynamoDB by default, or an in-process dictionary), plus a small
``requests``-based client and terminal front end for listing, searching,
editing and bulk-importing students.
"""

__version__ = "1.0.0"
