"""
Command-line tools: offline launch scoring and single-token analysis.
"""
