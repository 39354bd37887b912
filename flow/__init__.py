"""
flow is CLI to do things fast.
"""
