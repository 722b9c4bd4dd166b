"""
Integration tests for the parking lot

Test Categories:
- End-to-end placement scenarios and quantified properties
- Concurrent parking and removal
- Terminal sessions driven through text streams
"""
