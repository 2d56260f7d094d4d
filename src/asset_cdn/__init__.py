"""
Asset CDN: stable URLs for assets stored anywhere.

Maps opaque asset ids to objects in an internal blob store or at external
URLs, resolves image variants with fallback, and streams the chosen object.
"""
__version__ = "2.0.0"

SERVICE_NAME = "asset-cdn"
