"""
Core utilities — exceptions and field validators shared by the scorers,
the launch decoder and the API server.
"""
