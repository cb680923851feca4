"""
Core App

Tenant models (Business and its stores, staff, products and orders),
the custom User, and shared permission/error plumbing.
"""
