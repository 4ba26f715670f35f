"""
light-http - local static file servers stitched together by path aliases

Runs several HTTP/HTTPS static file servers and wires URL path prefixes on
one server into reverse-proxy targets pointing at the others.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
